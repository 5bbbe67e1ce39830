from abc import ABC, abstractmethod
from nftledger import config
from nftledger.exceptions import ContractExists, ContractNotFound
from nftledger.logger import get_logger
from nftledger.stdlib.access import export
from nftledger.stdlib.hashing import normalize_address

log = get_logger('Receiver')


class TokenReceiver(ABC):
    """Capability of a contract to accept tokens through a safe transfer.

    Contracts that do not implement this interface are rejected as recipients
    of safe transfers. Plain accounts are never asked.
    """

    address = None

    @abstractmethod
    def on_erc721_received(self, operator, sender, token_id, data) -> bytes:
        """Return ``config.RECEIVED_SELECTOR`` to accept ``token_id``."""


class ContractRegistry:
    """Addresses that hold code. Anything not deployed here is a plain account."""

    def __init__(self):
        self._contracts = {}

    def deploy(self, contract, address=None):
        address = normalize_address(address or contract.address)

        if address in self._contracts:
            raise ContractExists(address=address)

        contract.address = address
        self._contracts[address] = contract

        log.debug('Deployed {} at {}'.format(type(contract).__name__, address))
        return contract

    def resolve(self, address):
        return self._contracts.get(normalize_address(address))

    def get(self, address):
        contract = self.resolve(address)
        if contract is None:
            raise ContractNotFound(address=address)
        return contract

    def is_contract(self, address):
        return self.resolve(address) is not None

    def is_receiver(self, address):
        return isinstance(self.resolve(address), TokenReceiver)

    def addresses(self):
        return sorted(self._contracts.keys())

    def __contains__(self, address):
        return self.is_contract(address)

    def __len__(self):
        return len(self._contracts)


class ReceiverMock(TokenReceiver):
    """Receiver with a scripted answer. Records every callback it gets.

    ``hook`` runs before answering and may call back into the ledger.
    """

    def __init__(self, address=None, retval=config.RECEIVED_SELECTOR, error=None, hook=None):
        self.address = address
        self.retval = retval
        self.error = error
        self.hook = hook
        self.received = []

    @export
    def on_erc721_received(self, operator, sender, token_id, data):
        self.received.append({
            'operator': operator,
            'sender': sender,
            'token_id': token_id,
            'data': data
        })

        if self.hook is not None:
            self.hook(self, operator, sender, token_id, data)

        if self.error is not None:
            raise self.error

        return self.retval
