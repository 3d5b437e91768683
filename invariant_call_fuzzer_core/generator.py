# invariant_call_fuzzer_core/generator.py
"""
Call generation for invariant runs.

Every generated call is evaluated lazily against the registry and dictionaries as
they are at that moment, so contracts deployed and values observed by earlier
calls become selectable for the next one.

Contracts, senders and functions can be narrowed down by the run configuration
(targeted contracts, targeted/excluded senders, targeted selectors).
"""
import logging
import random
from typing import List, Optional, Tuple

from hexbytes import HexBytes
from hypothesis import strategies as st

from . import config as core_config
from .abi import AbiFunction, ContractAbi
from .call import Address, Call, random_address
from .contracts import ContractRegistry, OverrideTarget, TargetedContract
from .errors import NoEligibleContract, NoEligibleFunction, NoEligibleSender, UnknownTarget
from .param_fuzz import fuzz_calldata, fuzz_param_from_state
from .senders import SenderFilters
from .state import CalldataDictionary, ValueDictionary
from .strategies.base_strategy import CallStrategy
from .strategies.weighted import WeightedChoice, select_uniform, uniform_from

logger = logging.getLogger(__name__)


def select_random_contract(rng: random.Random, registry: ContractRegistry) -> TargetedContract:
    """
    Uniformly picks a registered contract that has at least one function. The
    eligible list is read from the registry on every call.
    """
    try:
        return uniform_from(registry.eligible)(rng)
    except IndexError:
        raise NoEligibleContract() from None


def select_random_function(rng: random.Random,
                           abi: ContractAbi,
                           targeted_functions: Tuple[AbiFunction, ...],
                           address: Address = ""
                          ) -> AbiFunction:
    """
    Picks one of `targeted_functions` if there are any (pure/view included),
    otherwise any state-mutating function of the ABI.
    """
    if targeted_functions:
        return select_uniform(rng, targeted_functions)

    mutable_functions = abi.mutable_functions()
    if not mutable_functions:
        raise NoEligibleFunction(address)
    return select_uniform(rng, mutable_functions)


def _sender_sources(value_dictionary: ValueDictionary, dictionary_weight: int) -> WeightedChoice[Address]:
    return WeightedChoice([
        (100 - dictionary_weight, random_address),
        (dictionary_weight, lambda rng: fuzz_param_from_state(rng, 'address', value_dictionary)),
    ])


def select_random_sender(rng: random.Random,
                         value_dictionary: ValueDictionary,
                         senders: SenderFilters,
                         dictionary_weight: int,
                         max_attempts: int = core_config.MAX_SENDER_DRAW_ATTEMPTS
                        ) -> Address:
    """
    Picks the caller of the next call:
    * if targeted senders are configured, one of them (exclusions are not consulted);
    * otherwise a random address (weight 100 - dictionary_weight) or an address
      from the value dictionary (weight dictionary_weight), redrawn while it is
      excluded, at most `max_attempts` times.
    """
    if senders.targeted:
        return select_uniform(rng, senders.targeted)

    sources = _sender_sources(value_dictionary, dictionary_weight)
    for _ in range(max_attempts):
        sender = sources.draw(rng)
        if not senders.is_excluded(sender):
            return sender
    raise NoEligibleSender(max_attempts, len(senders.excluded))


def _shared_calldata_dictionary(calldata_dictionary: Optional[CalldataDictionary]) -> CalldataDictionary:
    if calldata_dictionary is None:
        return CalldataDictionary()
    return calldata_dictionary.clone()


def fuzz_contract_with_calldata(rng: random.Random,
                                value_dictionary: ValueDictionary,
                                calldata_dictionary: CalldataDictionary,
                                contract: Address,
                                function: AbiFunction
                               ) -> Tuple[Address, HexBytes]:
    """Synthesizes calldata for `function` and pairs it with the target contract."""
    calldata = fuzz_calldata(rng, function, value_dictionary, calldata_dictionary)
    logger.debug("Generated input for %s on %s: %s", function.signature, contract, calldata.hex())
    return contract, calldata


class CallGenerator(CallStrategy):
    """
    Generates a call where the target, the function, the sender and the calldata
    are all drawn at random from the current shared state.

    The registry and value dictionary are shared handles, not copies: whatever
    the execution harness inserts between two `generate` calls is visible to the
    second one.
    """
    def __init__(self,
                 value_dictionary: ValueDictionary,
                 senders: SenderFilters,
                 registry: ContractRegistry,
                 dictionary_weight: int = core_config.DEFAULT_DICTIONARY_WEIGHT,
                 calldata_dictionary: Optional[CalldataDictionary] = None,
                 max_sender_draw_attempts: int = core_config.MAX_SENDER_DRAW_ATTEMPTS
                ):
        self.value_dictionary = value_dictionary
        self.senders = senders
        self.registry = registry
        self.run_config = core_config.RunConfig(dictionary_weight, max_sender_draw_attempts)
        self.calldata_dictionary = _shared_calldata_dictionary(calldata_dictionary)

    @classmethod
    def from_run_config(cls,
                        run_config: core_config.RunConfig,
                        value_dictionary: ValueDictionary,
                        senders: SenderFilters,
                        registry: ContractRegistry,
                        calldata_dictionary: Optional[CalldataDictionary] = None
                       ) -> 'CallGenerator':
        return cls(value_dictionary, senders, registry, run_config.dictionary_weight,
                   calldata_dictionary, run_config.max_sender_draw_attempts)

    @property
    def dictionary_weight(self) -> int:
        return self.run_config.dictionary_weight

    def generate(self, rng: random.Random) -> Call:
        contract = select_random_contract(rng, self.registry)
        function = select_random_function(rng, contract.abi, contract.targeted_functions, contract.address)
        sender = select_random_sender(rng, self.value_dictionary, self.senders,
                                      self.run_config.dictionary_weight,
                                      self.run_config.max_sender_draw_attempts)
        target, calldata = fuzz_contract_with_calldata(rng, self.value_dictionary, self.calldata_dictionary,
                                                       contract.address, function)
        return Call(sender=sender, target=target, calldata=calldata)

    def __repr__(self) -> str:
        return (f"CallGenerator(registry={self.registry!r}, senders={self.senders!r}, "
                f"dictionary_weight={self.dictionary_weight})")


class OverrideCallGenerator(CallStrategy):
    """
    Generates calls that mostly go to an externally supplied target (weight 80),
    occasionally to a different eligible registered contract (weight 20). Function
    selection and calldata synthesis then work as in CallGenerator.

    The target is read from its handle on every draw, so the harness can move it
    between calls.
    """
    def __init__(self,
                 value_dictionary: ValueDictionary,
                 registry: ContractRegistry,
                 target: OverrideTarget,
                 calldata_dictionary: Optional[CalldataDictionary] = None,
                 senders: Optional[SenderFilters] = None,
                 dictionary_weight: int = core_config.DEFAULT_DICTIONARY_WEIGHT,
                 max_sender_draw_attempts: int = core_config.MAX_SENDER_DRAW_ATTEMPTS
                ):
        self.value_dictionary = value_dictionary
        self.registry = registry
        self.target = target
        self.calldata_dictionary = _shared_calldata_dictionary(calldata_dictionary)
        self.senders = senders if senders is not None else SenderFilters()
        self.run_config = core_config.RunConfig(dictionary_weight, max_sender_draw_attempts)
        self._target_choice: WeightedChoice[Address] = WeightedChoice([
            (core_config.OVERRIDE_TARGET_WEIGHT, lambda rng: self.target.get()),
            (core_config.OVERRIDE_RANDOM_CONTRACT_WEIGHT, self._random_other_contract),
        ])

    def _random_other_contract(self, rng: random.Random) -> Address:
        # Falls back to the supplied target when it is the only eligible contract
        supplied = self.target.get()
        eligible = self.registry.eligible()
        others = [entry for entry in eligible if entry.address != supplied]
        if not others:
            if supplied in {entry.address for entry in eligible}:
                return supplied
            raise NoEligibleContract()
        return select_uniform(rng, others).address

    def select_target(self, rng: random.Random) -> TargetedContract:
        address = self._target_choice.draw(rng)
        contract = self.registry.get(address)
        if contract is None:
            raise UnknownTarget(address)
        return contract

    def generate_target_and_calldata(self, rng: random.Random) -> Tuple[Address, HexBytes]:
        """Draws the target, then a function on it and its calldata."""
        contract = self.select_target(rng)
        function = select_random_function(rng, contract.abi, contract.targeted_functions, contract.address)
        return fuzz_contract_with_calldata(rng, self.value_dictionary, self.calldata_dictionary,
                                           contract.address, function)

    def generate(self, rng: random.Random) -> Call:
        target, calldata = self.generate_target_and_calldata(rng)
        sender = select_random_sender(rng, self.value_dictionary, self.senders,
                                      self.run_config.dictionary_weight,
                                      self.run_config.max_sender_draw_attempts)
        return Call(sender=sender, target=target, calldata=calldata)

    def __repr__(self) -> str:
        return f"OverrideCallGenerator(target={self.target!r}, registry={self.registry!r})"


def invariant_strategy(value_dictionary: ValueDictionary,
                       senders: SenderFilters,
                       registry: ContractRegistry,
                       dictionary_weight: int = core_config.DEFAULT_DICTIONARY_WEIGHT,
                       calldata_dictionary: Optional[CalldataDictionary] = None
                      ) -> st.SearchStrategy[List[Call]]:
    """
    Hypothesis strategy seeding an invariant sequence with its first call. The
    following calls are drawn from the same generator as execution proceeds.
    """
    generator = CallGenerator(value_dictionary, senders, registry, dictionary_weight, calldata_dictionary)
    return generator.sequence_seed()
