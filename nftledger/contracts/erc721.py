"""
Non-fungible token ownership ledger.

Token ids map to exactly one owner. Owners can delegate a single token
(``approve``) or all of their tokens (``set_approval_for_all``). Safe
transfers ask contract recipients to acknowledge the token and are undone
when they do not.

The acting identity is read from the runtime context (``rt.context.caller``),
so the ledger is meant to be driven through an ``Executor`` or
``LedgerClient``, which set the context and provide commit/rollback around
each call.
"""

from nftledger import config
from nftledger.db.driver import LedgerDriver
from nftledger.db.orm import Hash
from nftledger.execution.runtime import rt
from nftledger.stdlib.access import export, frame
from nftledger.stdlib.hashing import normalize_address
from nftledger.contracts.receiver import TokenReceiver
from nftledger.logger import get_logger
from nftledger.exceptions import (
    InvalidQuery, NonexistentToken, NonexistentOperatorToken, AlreadyMinted, BurnedTokenRemint,
    NotOwnerOrApproved, ApproveToOwner, ApproveToCaller, ReceiverRejected, InvalidRecipient, InvalidTokenId,
    InvalidData
)

log = get_logger('ERC721')

ZERO_ADDRESS = config.ZERO_ADDRESS

NOT_OWNER_NOR_APPROVED = 'transfer caller is not owner nor approved'
NOT_OWN = 'transfer of token that is not own'
NOT_OWNER_NOR_OPERATOR = 'approve caller is not owner nor approved for all'
NO_CALLER = 'approve from unknown caller'


def validate_token_id(token_id):
    if isinstance(token_id, bool) or not isinstance(token_id, int):
        raise InvalidTokenId(token_id=token_id)

    if token_id < 0 or token_id > config.MAX_TOKEN_ID:
        raise InvalidTokenId(token_id=token_id)

    return token_id


def decode_data(data, op):
    if data is None:
        return b''

    if isinstance(data, (bytes, bytearray)):
        return bytes(data)

    if isinstance(data, str):
        try:
            return bytes.fromhex(data[2:] if data.startswith('0x') else data)
        except ValueError:
            pass

    raise InvalidData(op=op, data=data)


class ERC721:
    def __init__(self, address, driver: LedgerDriver=None, registry=None, name=config.LEDGER_NAME,
                 allow_remint=None, allow_mint_to_zero=None):
        self.address = normalize_address(address)
        self.name = name
        self.registry = registry

        self.allow_remint = config.ALLOW_REMINT if allow_remint is None else allow_remint
        self.allow_mint_to_zero = config.ALLOW_MINT_TO_ZERO if allow_mint_to_zero is None else allow_mint_to_zero

        self.driver = driver or rt.env.get('__Driver') or LedgerDriver()

        self.owners = Hash(name, 'owners', driver=self.driver)
        self.balances = Hash(name, 'balances', driver=self.driver, default_value=0)
        self.approvals = Hash(name, 'approvals', driver=self.driver)
        self.operators = Hash(name, 'operators', driver=self.driver, default_value=False)
        self.burned = Hash(name, 'burned', driver=self.driver, default_value=False)

    # Views

    @export
    def balance_of(self, owner):
        owner = normalize_address(owner)
        if owner == ZERO_ADDRESS:
            raise InvalidQuery(op='balanceOf')

        return self.balances[owner]

    @export
    def owner_of(self, token_id):
        return self._owner_of(token_id, op='ownerOf')

    @export
    def get_approved(self, token_id):
        self._owner_of(token_id, op='getApproved')
        return self.approvals[token_id] or ZERO_ADDRESS

    @export
    def is_approved_for_all(self, owner, operator):
        return self.operators[normalize_address(owner), normalize_address(operator)] is True

    @export
    def is_approved_or_owner(self, spender, token_id):
        validate_token_id(token_id)
        owner = self.owners[token_id]
        if owner is None:
            raise NonexistentOperatorToken(op='_isApprovedOrOwner', token_id=token_id)

        return self._is_approved_or_owner(normalize_address(spender), owner, token_id)

    @export
    def exists(self, token_id):
        validate_token_id(token_id)
        return self.owners[token_id] is not None

    # Mutations

    @export
    def mint(self, to, token_id):
        validate_token_id(token_id)
        to = normalize_address(to)

        if to == ZERO_ADDRESS and not self.allow_mint_to_zero:
            raise InvalidRecipient(op='_mint', action='mint')

        if self.owners[token_id] is not None:
            raise AlreadyMinted(token_id=token_id)

        if self.burned[token_id]:
            if not self.allow_remint:
                raise BurnedTokenRemint(token_id=token_id)
            del self.burned[token_id]

        self.owners[token_id] = to
        self.balances[to] += 1

        log.debug('Minted token {} to {}'.format(token_id, to))

    @export
    def burn(self, token_id):
        owner = self._owner_of(token_id, op='burn')

        del self.approvals[token_id]
        self.balances[owner] -= 1
        del self.owners[token_id]
        self.burned[token_id] = True

        log.debug('Burned token {} of {}'.format(token_id, owner))

    @export
    def approve(self, to, token_id):
        owner = self._owner_of(token_id, op='approve')
        to = normalize_address(to)

        if to == owner:
            raise ApproveToOwner(token_id=token_id)

        caller = self._caller()
        if caller != owner and not self._is_operator(owner, caller):
            raise NotOwnerOrApproved(op='approve', condition=NOT_OWNER_NOR_OPERATOR)

        if to == ZERO_ADDRESS:
            del self.approvals[token_id]
        else:
            self.approvals[token_id] = to

    @export
    def set_approval_for_all(self, operator, approved):
        caller = self._caller()
        if caller is None:
            raise NotOwnerOrApproved(op='setApprovalForAll', condition=NO_CALLER)

        operator = normalize_address(operator)

        if operator == caller:
            raise ApproveToCaller(operator=operator)

        if approved:
            self.operators[caller, operator] = True
        else:
            del self.operators[caller, operator]

    @export
    def transfer_from(self, sender, to, token_id):
        owner, to = self._authorize_transfer('transferFrom', sender, to, token_id)
        self._transfer(owner, to, token_id)

    @export
    def safe_transfer_from(self, sender, to, token_id, data=b''):
        owner, to = self._authorize_transfer('safeTransferFrom', sender, to, token_id)
        data = decode_data(data, op='safeTransferFrom')

        savepoint = self.driver.savepoint()
        self._transfer(owner, to, token_id)

        if not self._check_on_erc721_received(owner, to, token_id, data):
            self.driver.restore(savepoint)
            log.notice('Safe transfer of token {} to {} rejected'.format(token_id, to))
            raise ReceiverRejected(receiver=to, token_id=token_id)

    # Internals

    def _owner_of(self, token_id, op):
        validate_token_id(token_id)
        owner = self.owners[token_id]
        if owner is None:
            raise NonexistentToken(op=op, token_id=token_id)
        return owner

    def _caller(self):
        caller = rt.context.caller
        if caller is None:
            return None
        return normalize_address(caller)

    def _is_operator(self, owner, operator):
        if operator is None:
            return False
        return self.operators[owner, operator] is True

    def _is_approved_or_owner(self, spender, owner, token_id):
        if spender is None:
            return False

        return spender == owner or \
            self.approvals[token_id] == spender or \
            self._is_operator(owner, spender)

    def _authorize_transfer(self, op, sender, to, token_id):
        owner = self._owner_of(token_id, op=op)

        if not self._is_approved_or_owner(self._caller(), owner, token_id):
            raise NotOwnerOrApproved(op=op, condition=NOT_OWNER_NOR_APPROVED)

        if normalize_address(sender) != owner:
            raise NotOwnerOrApproved(op=op, condition=NOT_OWN)

        to = normalize_address(to)
        if to == ZERO_ADDRESS:
            raise InvalidRecipient(op=op, action='transfer')

        return owner, to

    def _transfer(self, owner, to, token_id):
        # Clear approvals from the previous owner
        del self.approvals[token_id]

        self.balances[owner] -= 1
        self.balances[to] += 1
        self.owners[token_id] = to

        log.debug('Transferred token {} from {} to {}'.format(token_id, owner, to))

    def _check_on_erc721_received(self, sender, to, token_id, data):
        contract = self.registry.resolve(to) if self.registry is not None else None

        # Plain accounts cannot answer
        if contract is None:
            return True

        if not isinstance(contract, TokenReceiver):
            return False

        operator = self._caller()

        with frame(to, caller=self.address):
            try:
                retval = contract.on_erc721_received(operator, sender, token_id, data)
            except Exception as e:
                log.warning('Receiver {} failed on token {}: {}'.format(to, token_id, e))
                return False

        return retval == config.RECEIVED_SELECTOR
