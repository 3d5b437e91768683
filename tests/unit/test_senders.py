import logging
import random

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from invariant_call_fuzzer_core.call import random_address, to_address
from invariant_call_fuzzer_core.errors import NoEligibleSender
from invariant_call_fuzzer_core.generator import select_random_sender
from invariant_call_fuzzer_core.senders import SenderFilters, load_sender_filters
from invariant_call_fuzzer_core.state import ValueDictionary

from conftest import BEEF_ADDRESS, COUNTER_ADDRESS, TOKEN_ADDRESS


@pytest.fixture
def populated_dictionary():
    dictionary = ValueDictionary()
    for address in (COUNTER_ADDRESS, TOKEN_ADDRESS, BEEF_ADDRESS):
        dictionary.insert_address(address)
    return dictionary


class TestSenderFilters:
    def test_addresses_are_checksummed_and_deduplicated(self):
        filters = SenderFilters(targeted=[BEEF_ADDRESS.lower(), BEEF_ADDRESS], excluded=[TOKEN_ADDRESS.lower()])
        assert filters.targeted == (BEEF_ADDRESS,)
        assert filters.excluded == frozenset({TOKEN_ADDRESS})
        assert filters.is_excluded(TOKEN_ADDRESS)

    def test_invalid_address_raises(self):
        with pytest.raises(ValueError):
            SenderFilters(targeted=["0x1234"])


class TestLoadSenderFilters:
    def test_loads_targeted_and_excluded_files(self, tmp_path):
        targeted_csv = tmp_path / "targeted.csv"
        targeted_csv.write_text(f"address\n{BEEF_ADDRESS.lower()}\n{COUNTER_ADDRESS}\n")
        excluded_csv = tmp_path / "excluded.csv"
        excluded_csv.write_text(f"address,label\n{TOKEN_ADDRESS},token\n")

        filters = load_sender_filters([str(targeted_csv)], [str(excluded_csv)])

        assert filters.targeted == (BEEF_ADDRESS, COUNTER_ADDRESS)
        assert filters.excluded == frozenset({TOKEN_ADDRESS})

    def test_bad_rows_are_skipped_with_warning(self, tmp_path, caplog):
        csv_file = tmp_path / "senders.csv"
        csv_file.write_text(f"address\nnot-an-address\n{BEEF_ADDRESS}\n")

        with caplog.at_level(logging.WARNING):
            filters = load_sender_filters(excluded_paths=[str(csv_file)])

        assert filters.excluded == frozenset({BEEF_ADDRESS})
        assert "not-an-address" in caplog.text

    def test_missing_and_empty_files_are_skipped(self, tmp_path, caplog):
        empty_csv = tmp_path / "empty.csv"
        empty_csv.write_text("")

        with caplog.at_level(logging.WARNING):
            filters = load_sender_filters([str(tmp_path / "missing.csv"), str(empty_csv)])

        assert filters.targeted == ()
        assert "Sender file not found" in caplog.text
        assert "Sender file is empty" in caplog.text

    def test_missing_column_is_skipped(self, tmp_path, caplog):
        csv_file = tmp_path / "senders.csv"
        csv_file.write_text(f"pub_key\n{BEEF_ADDRESS}\n")

        with caplog.at_level(logging.WARNING):
            filters = load_sender_filters([str(csv_file)])

        assert filters.targeted == ()
        assert "no 'address' column" in caplog.text

    def test_custom_column(self, tmp_path):
        csv_file = tmp_path / "keys.csv"
        csv_file.write_text(f"pub_key,priv_key\n{BEEF_ADDRESS},00\n")
        filters = load_sender_filters([str(csv_file)], column="pub_key")
        assert filters.targeted == (BEEF_ADDRESS,)


class TestSelectRandomSender:
    @given(dictionary_weight=st.integers(min_value=0, max_value=100),
           seed=st.integers(min_value=0, max_value=2**32))
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture], max_examples=50)
    def test_targeted_senders_always_win(self, populated_dictionary, dictionary_weight, seed):
        """Whatever the dictionary weight, only targeted senders are produced."""
        senders = SenderFilters(targeted=[BEEF_ADDRESS, COUNTER_ADDRESS])
        rng = random.Random(seed)
        for _ in range(20):
            sender = select_random_sender(rng, populated_dictionary, senders, dictionary_weight)
            assert sender in senders.targeted

    def test_targeting_takes_precedence_over_exclusion(self, populated_dictionary, rng):
        senders = SenderFilters(targeted=[BEEF_ADDRESS], excluded=[BEEF_ADDRESS])
        drawn = {select_random_sender(rng, populated_dictionary, senders, 50) for _ in range(500)}
        assert drawn == {BEEF_ADDRESS}

    def test_excluded_senders_are_never_produced(self, populated_dictionary, rng):
        """10,000 draws with the whole dictionary minus one address excluded."""
        excluded = [COUNTER_ADDRESS, TOKEN_ADDRESS] + [random_address(random.Random(i)) for i in range(200)]
        senders = SenderFilters(excluded=excluded)
        for _ in range(10_000):
            sender = select_random_sender(rng, populated_dictionary, senders, 90)
            assert sender not in senders.excluded

    def test_weight_zero_ignores_dictionary(self, populated_dictionary, rng):
        dictionary_addresses = set(populated_dictionary.addresses())
        drawn = [select_random_sender(rng, populated_dictionary, SenderFilters(), 0) for _ in range(2_000)]
        assert not dictionary_addresses.intersection(drawn)

    def test_weight_hundred_uses_only_dictionary(self, populated_dictionary, rng):
        dictionary_addresses = set(populated_dictionary.addresses())
        drawn = {select_random_sender(rng, populated_dictionary, SenderFilters(), 100) for _ in range(2_000)}
        assert drawn == dictionary_addresses

    def test_higher_weight_draws_more_dictionary_senders(self, populated_dictionary):
        dictionary_addresses = set(populated_dictionary.addresses())

        def dictionary_share(weight):
            rng = random.Random(7)
            drawn = [select_random_sender(rng, populated_dictionary, SenderFilters(), weight) for _ in range(5_000)]
            return sum(sender in dictionary_addresses for sender in drawn) / len(drawn)

        shares = [dictionary_share(weight) for weight in (0, 25, 50, 75, 100)]
        assert shares == sorted(shares)
        assert shares[0] == 0.0
        assert shares[-1] == 1.0
        assert shares[2] == pytest.approx(0.5, abs=0.05)

    def test_empty_dictionary_falls_back_to_random_addresses(self, value_dictionary, rng):
        sender = select_random_sender(rng, value_dictionary, SenderFilters(), 100)
        assert to_address(sender) == sender

    def test_every_draw_excluded_raises(self, rng):
        """A dictionary holding only excluded addresses can never yield a sender."""
        dictionary = ValueDictionary()
        dictionary.insert_address(BEEF_ADDRESS)
        senders = SenderFilters(excluded=[BEEF_ADDRESS])

        with pytest.raises(NoEligibleSender) as excinfo:
            select_random_sender(rng, dictionary, senders, 100, max_attempts=16)

        assert excinfo.value.attempts == 16
        assert excinfo.value.excluded_count == 1
