class LedgerError(Exception):
    """
    The base exception for the ledger. The fmt directive
    will be overloaded by the inheriting classes

    :ivar msg: The message associated with the error
    """
    fmt = 'An unspecified error occurred'

    def __init__(self, **kwargs):
        msg = self.fmt.format(**kwargs)
        Exception.__init__(self, msg)
        self.kwargs = kwargs


class InvalidQuery(LedgerError):
    """
    A balance was requested for the zero address

    :ivar op: The name of the operation that was called
    """
    fmt = 'ERC721::{op}: balance query for the zero address'


class NonexistentToken(LedgerError):
    """
    The token id has never been minted or has been burned

    :ivar op: The name of the operation that was called
    :ivar token_id: The id that was queried
    """
    fmt = 'ERC721::{op}: query for nonexistent token'


class NonexistentOperatorToken(NonexistentToken):
    fmt = 'ERC721::{op}: operator query for nonexistent token'


class AlreadyMinted(LedgerError):
    """
    :ivar token_id: The id that was minted twice
    """
    fmt = 'ERC721::_mint: token already minted'


class BurnedTokenRemint(AlreadyMinted):
    fmt = 'ERC721::_mint: token was burned'


class NotOwnerOrApproved(LedgerError):
    """
    The caller holds neither ownership, the per-token approval,
    nor an operator approval for the token

    :ivar op: The name of the operation that was called
    :ivar condition: Description of the violated condition
    """
    fmt = 'ERC721::{op}: {condition}'


class ApproveToOwner(LedgerError):
    fmt = 'ERC721::approve: approval to current owner'


class ApproveToCaller(LedgerError):
    fmt = 'ERC721::_setApprovalForAll: approve to caller'


class ReceiverRejected(LedgerError):
    """
    The recipient of a safe transfer did not acknowledge it

    :ivar receiver: Address of the recipient
    """
    fmt = 'ERC721::_checkOnERC721Received: transfer to non ERC721Receiver implementer'


class InvalidRecipient(LedgerError):
    """
    :ivar op: The name of the operation that was called
    :ivar action: 'transfer' or 'mint'
    """
    fmt = 'ERC721::{op}: {action} to the zero address'


class InvalidAddress(LedgerError):
    fmt = "Invalid address '{address}'"


class InvalidTokenId(LedgerError):
    fmt = "Invalid token id '{token_id}'"


class PrivateMethodCall(LedgerError):
    fmt = "Private method '{function_name}' not callable"


class UnknownFunction(LedgerError):
    fmt = "Contract '{contract_name}' has no exported function '{function_name}'"


class DatabaseDriverNotFound(LedgerError):
    """
    Could not find the specified database driver when
    looking for it

    :ivar driver: The name of the database driver the
                  the user attempted to load
    :ivar known_drivers: The list of known drivers
                         currently supported
    """
    fmt = "Unknown database driver '{driver}', known drivers '{known_drivers}'"


class ContractExists(LedgerError):
    """
    When attempting to deploy a contract, found that one
    already exists at the address

    :ivar address: The address the contract was deployed to
    """
    fmt = "Contract at address '{address}' already exists"


class ContractNotFound(LedgerError):
    fmt = "No contract deployed at '{address}'"


class InvalidData(LedgerError):
    """
    The payload of a safe transfer is neither bytes nor a hex string

    :ivar op: The name of the operation that was called
    :ivar data: The rejected payload
    """
    fmt = "ERC721::{op}: invalid data '{data}'"
