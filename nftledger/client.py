from nftledger.execution.executor import Executor
from nftledger.db.driver import LedgerDriver
from nftledger.contracts.erc721 import ERC721
from nftledger.contracts.receiver import ContractRegistry
from nftledger.stdlib.access import is_exported
from nftledger.stdlib.hashing import derive_address, normalize_address
from functools import partial
import inspect

from . import config


class LedgerProxy:
    """A deployed contract seen through one signer.

    Every exported function of the contract becomes a method here that runs
    through the executor as one atomic call and raises on failure.
    """
    def __init__(self, contract, signer, executor: Executor):
        self.contract = contract
        self.address = contract.address
        self.signer = normalize_address(signer)
        self.executor = executor
        self.functions = []

        # set up virtual functions
        for name, member in inspect.getmembers(type(contract), predicate=inspect.isfunction):
            if not is_exported(member):
                continue

            self.functions.append(name)
            setattr(self, name, partial(self._abstract_function_call, name))

    def connect(self, signer):
        return LedgerProxy(contract=self.contract, signer=signer, executor=self.executor)

    def keys(self):
        return self.executor.driver.get_contract_keys(self.contract.name)

    def quick_read(self, variable, key=None, args=None):
        a = []

        if key is not None:
            a.append(key)

        if args is not None and isinstance(args, list):
            for arg in args:
                a.append(arg)

        k = self.executor.driver.make_key(contract=self.contract.name, variable=variable, args=a)
        return self.executor.driver.get(k)

    def _abstract_function_call(self, func, *args, signer=None, auto_commit=True, **kwargs):
        # positional arguments are bound to the contract function's parameter names
        if args:
            bound = inspect.signature(getattr(self.contract, func)).bind_partial(*args, **kwargs)
            kwargs = dict(bound.arguments)

        output = self.executor.execute(sender=signer or self.signer,
                                       contract=self.address,
                                       function_name=func,
                                       kwargs=kwargs,
                                       auto_commit=auto_commit)

        if output['status_code'] == 1:
            raise output['result']

        return output['result']


class LedgerClient:
    def __init__(self, signer, driver=None, registry=None):
        self.raw_driver = driver if driver is not None else LedgerDriver()
        self.registry = registry if registry is not None else ContractRegistry()
        self.executor = Executor(driver=self.raw_driver, registry=self.registry)
        self.signer = normalize_address(signer)

    def flush(self):
        self.raw_driver.flush()

    def next_address(self, deployer=None):
        return derive_address(deployer or self.signer, nonce=len(self.registry))

    def deploy(self, contract, address=None):
        if address is None and contract.address is None:
            address = self.next_address()

        return self.registry.deploy(contract, address=address)

    def deploy_ledger(self, name=config.LEDGER_NAME, address=None, allow_remint=None, allow_mint_to_zero=None):
        ledger = ERC721(address=address or self.next_address(),
                        driver=self.raw_driver,
                        registry=self.registry,
                        name=name,
                        allow_remint=allow_remint,
                        allow_mint_to_zero=allow_mint_to_zero)

        self.deploy(ledger)
        return self.get_contract(ledger.address)

    # Returns a proxy which has partial methods mapped to each exported function.
    def get_contract(self, address, signer=None):
        contract = self.registry.resolve(address)

        if contract is None:
            return None

        return LedgerProxy(contract=contract, signer=signer or self.signer, executor=self.executor)

    def get_contracts(self):
        return self.registry.addresses()
