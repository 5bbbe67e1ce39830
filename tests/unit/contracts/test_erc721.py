from unittest import TestCase
from nftledger.client import LedgerClient
from nftledger.contracts.erc721 import ERC721
from nftledger.config import ZERO_ADDRESS
from nftledger.exceptions import (
    InvalidQuery, NonexistentToken, AlreadyMinted, NotOwnerOrApproved, ApproveToOwner, ApproveToCaller,
    InvalidRecipient, InvalidAddress, InvalidTokenId, ReceiverRejected
)

OWNER = '0x' + '11' * 20
OTHER = '0x' + '22' * 20
THIRD = '0x' + 'ab' * 20


class TestERC721(TestCase):
    def setUp(self):
        self.c = LedgerClient(signer=OWNER)
        self.c.flush()

        self.contract = self.c.deploy_ledger()
        self.contract.mint(to=OWNER, token_id=0)
        self.contract.mint(to=OWNER, token_id=1)

        self.next_token_id = 2

    def tearDown(self):
        self.c.flush()

    def assert_balances_match_owners(self):
        owners = {}
        for key, owner in self.c.raw_driver.items('erc721.owners:').items():
            owners[owner] = owners.get(owner, 0) + 1

        for address in (OWNER, OTHER, THIRD):
            self.assertEqual(self.contract.balance_of(owner=address), owners.get(address, 0))

    def test_balance_of_owner(self):
        self.assertEqual(self.contract.balance_of(owner=OWNER), 2)

    def test_balance_of_other(self):
        self.assertEqual(self.contract.balance_of(owner=OTHER), 0)

    def test_balance_of_zero_address_fails(self):
        with self.assertRaises(InvalidQuery) as e:
            self.contract.balance_of(owner=ZERO_ADDRESS)

        self.assertEqual(str(e.exception), 'ERC721::balanceOf: balance query for the zero address')

    def test_balance_of_malformed_address_fails(self):
        with self.assertRaises(InvalidAddress):
            self.contract.balance_of(owner='stu')

    def test_addresses_are_case_insensitive(self):
        self.contract.mint(to='0x' + 'AB' * 20, token_id=self.next_token_id)

        self.assertEqual(self.contract.owner_of(token_id=self.next_token_id), THIRD)
        self.assertEqual(self.contract.balance_of(owner=THIRD), 1)

    def test_owner_of_points_to_owner_and_other(self):
        self.assertEqual(self.contract.owner_of(token_id=0), OWNER)

        self.contract.mint(to=OTHER, token_id=self.next_token_id)
        self.assertEqual(self.contract.owner_of(token_id=2), OTHER)

    def test_owner_of_nonexistent_token_fails(self):
        with self.assertRaises(NonexistentToken) as e:
            self.contract.owner_of(token_id=42)

        self.assertEqual(str(e.exception), 'ERC721::ownerOf: query for nonexistent token')

    def test_negative_token_id_fails(self):
        with self.assertRaises(InvalidTokenId):
            self.contract.owner_of(token_id=-1)

    def test_positional_arguments_bind_to_parameters(self):
        self.assertEqual(self.contract.owner_of(1), OWNER)
        self.assertEqual(self.contract.balance_of(OWNER), 2)

    def test_transfer_from_and_back(self):
        self.contract.transfer_from(sender=OWNER, to=OTHER, token_id=0)
        self.assertEqual(self.contract.owner_of(token_id=0), OTHER)

        self.contract.connect(OTHER).transfer_from(sender=OTHER, to=OWNER, token_id=0)
        self.assertEqual(self.contract.owner_of(token_id=0), OWNER)

        self.assert_balances_match_owners()

    def test_safe_transfer_to_account_and_back(self):
        self.contract.safe_transfer_from(sender=OWNER, to=OTHER, token_id=0)
        self.assertEqual(self.contract.owner_of(token_id=0), OTHER)
        self.assertEqual(self.contract.balance_of(owner=OTHER), 1)
        self.assertEqual(self.contract.balance_of(owner=OWNER), 1)

        self.contract.connect(OTHER).transfer_from(sender=OTHER, to=OWNER, token_id=0)
        self.assertEqual(self.contract.owner_of(token_id=0), OWNER)

    def test_safe_transfer_to_non_receiver_contract_fails(self):
        with self.assertRaises(ReceiverRejected) as e:
            self.contract.safe_transfer_from(sender=OWNER, to=self.contract.address, token_id=0)

        self.assertEqual(str(e.exception),
                         'ERC721::_checkOnERC721Received: transfer to non ERC721Receiver implementer')

        self.assertEqual(self.contract.owner_of(token_id=0), OWNER)
        self.assertEqual(self.contract.balance_of(owner=OWNER), 2)
        self.assertEqual(self.contract.balance_of(owner=self.contract.address), 0)

    def test_unapproved_sender_fails(self):
        other = self.contract.connect(OTHER)

        with self.assertRaises(NotOwnerOrApproved) as e:
            other.transfer_from(sender=OWNER, to=OTHER, token_id=0)

        self.assertEqual(str(e.exception), 'ERC721::transferFrom: transfer caller is not owner nor approved')

        with self.assertRaises(NotOwnerOrApproved) as e:
            other.safe_transfer_from(sender=OWNER, to=OTHER, token_id=0)

        self.assertEqual(str(e.exception), 'ERC721::safeTransferFrom: transfer caller is not owner nor approved')

        self.assertEqual(self.contract.owner_of(token_id=0), OWNER)

    def test_transfer_with_wrong_sender_fails(self):
        self.contract.set_approval_for_all(operator=OTHER, approved=True)

        with self.assertRaises(NotOwnerOrApproved) as e:
            self.contract.connect(OTHER).transfer_from(sender=THIRD, to=OTHER, token_id=0)

        self.assertEqual(str(e.exception), 'ERC721::transferFrom: transfer of token that is not own')
        self.assertEqual(self.contract.balance_of(owner=OWNER), 2)

    def test_transfer_to_zero_address_fails(self):
        with self.assertRaises(InvalidRecipient) as e:
            self.contract.transfer_from(sender=OWNER, to=ZERO_ADDRESS, token_id=0)

        self.assertEqual(str(e.exception), 'ERC721::transferFrom: transfer to the zero address')
        self.assertEqual(self.contract.owner_of(token_id=0), OWNER)

    def test_transfer_of_nonexistent_token_fails(self):
        with self.assertRaises(NonexistentToken):
            self.contract.transfer_from(sender=OWNER, to=OTHER, token_id=42)

    def test_mint_twice_fails(self):
        with self.assertRaises(AlreadyMinted) as e:
            self.contract.mint(to=OTHER, token_id=0)

        self.assertEqual(str(e.exception), 'ERC721::_mint: token already minted')
        self.assertEqual(self.contract.owner_of(token_id=0), OWNER)
        self.assertEqual(self.contract.balance_of(owner=OTHER), 0)

    def test_burn(self):
        self.contract.burn(token_id=0)

        with self.assertRaises(NonexistentToken) as e:
            self.contract.owner_of(token_id=0)

        self.assertEqual(str(e.exception), 'ERC721::ownerOf: query for nonexistent token')
        self.assertEqual(self.contract.balance_of(owner=OWNER), 1)

    def test_burn_nonexistent_token_fails(self):
        with self.assertRaises(NonexistentToken):
            self.contract.burn(token_id=42)

    def test_approve_token_to_other(self):
        self.contract.approve(to=OTHER, token_id=0)
        self.assertEqual(self.contract.get_approved(token_id=0), OTHER)

    def test_approved_party_can_transfer(self):
        self.contract.approve(to=OTHER, token_id=0)
        self.contract.connect(OTHER).transfer_from(sender=OWNER, to=THIRD, token_id=0)

        self.assertEqual(self.contract.owner_of(token_id=0), THIRD)
        self.assert_balances_match_owners()

    def test_approval_is_scoped_to_one_token(self):
        self.contract.approve(to=OTHER, token_id=0)

        with self.assertRaises(NotOwnerOrApproved):
            self.contract.connect(OTHER).transfer_from(sender=OWNER, to=OTHER, token_id=1)

    def test_approval_cleared_on_transfer(self):
        self.contract.approve(to=OTHER, token_id=0)
        self.contract.transfer_from(sender=OWNER, to=THIRD, token_id=0)

        self.assertEqual(self.contract.get_approved(token_id=0), ZERO_ADDRESS)

        with self.assertRaises(NotOwnerOrApproved):
            self.contract.connect(OTHER).transfer_from(sender=THIRD, to=OTHER, token_id=0)

    def test_approval_cleared_on_burn_and_remint(self):
        self.contract.approve(to=OTHER, token_id=0)
        self.contract.burn(token_id=0)
        self.contract.mint(to=OWNER, token_id=0)

        self.assertEqual(self.contract.get_approved(token_id=0), ZERO_ADDRESS)

    def test_approve_zero_clears_approval(self):
        self.contract.approve(to=OTHER, token_id=0)
        self.contract.approve(to=ZERO_ADDRESS, token_id=0)

        self.assertEqual(self.contract.get_approved(token_id=0), ZERO_ADDRESS)

    def test_no_approvals_by_default(self):
        self.assertEqual(self.contract.get_approved(token_id=0), ZERO_ADDRESS)

    def test_get_approved_nonexistent_token_fails(self):
        with self.assertRaises(NonexistentToken) as e:
            self.contract.get_approved(token_id=42)

        self.assertEqual(str(e.exception), 'ERC721::getApproved: query for nonexistent token')

    def test_approve_by_stranger_fails(self):
        with self.assertRaises(NotOwnerOrApproved) as e:
            self.contract.connect(OTHER).approve(to=THIRD, token_id=0)

        self.assertEqual(str(e.exception), 'ERC721::approve: approve caller is not owner nor approved for all')
        self.assertEqual(self.contract.get_approved(token_id=0), ZERO_ADDRESS)

    def test_approve_to_owner_fails(self):
        with self.assertRaises(ApproveToOwner) as e:
            self.contract.approve(to=OWNER, token_id=0)

        self.assertEqual(str(e.exception), 'ERC721::approve: approval to current owner')

    def test_set_approval_for_all(self):
        self.contract.set_approval_for_all(operator=OTHER, approved=True)
        self.assertTrue(self.contract.is_approved_for_all(owner=OWNER, operator=OTHER))
        self.assertFalse(self.contract.is_approved_for_all(owner=OTHER, operator=OWNER))

        self.contract.set_approval_for_all(operator=OTHER, approved=False)
        self.assertFalse(self.contract.is_approved_for_all(owner=OWNER, operator=OTHER))

    def test_set_approval_for_all_to_caller_fails(self):
        with self.assertRaises(ApproveToCaller) as e:
            self.contract.set_approval_for_all(operator=OWNER, approved=True)

        self.assertEqual(str(e.exception), 'ERC721::_setApprovalForAll: approve to caller')
        self.assertFalse(self.contract.is_approved_for_all(owner=OWNER, operator=OWNER))

    def test_operator_can_approve_and_transfer_all(self):
        self.contract.set_approval_for_all(operator=OTHER, approved=True)
        operator = self.contract.connect(OTHER)

        operator.approve(to=THIRD, token_id=1)
        self.assertEqual(self.contract.get_approved(token_id=1), THIRD)

        operator.transfer_from(sender=OWNER, to=OTHER, token_id=0)
        operator.transfer_from(sender=OWNER, to=THIRD, token_id=1)

        self.assertEqual(self.contract.balance_of(owner=OWNER), 0)
        self.assertEqual(self.contract.balance_of(owner=OTHER), 1)
        self.assertEqual(self.contract.balance_of(owner=THIRD), 1)

    def test_operator_approval_survives_transfers(self):
        self.contract.set_approval_for_all(operator=OTHER, approved=True)
        self.contract.transfer_from(sender=OWNER, to=THIRD, token_id=0)

        self.assertTrue(self.contract.is_approved_for_all(owner=OWNER, operator=OTHER))
        self.contract.connect(OTHER).transfer_from(sender=OWNER, to=OTHER, token_id=1)

    def test_operator_of_previous_owner_loses_access(self):
        self.contract.set_approval_for_all(operator=OTHER, approved=True)
        self.contract.transfer_from(sender=OWNER, to=THIRD, token_id=0)

        with self.assertRaises(NotOwnerOrApproved):
            self.contract.connect(OTHER).transfer_from(sender=THIRD, to=OTHER, token_id=0)

    def test_is_approved_or_owner(self):
        self.contract.approve(to=OTHER, token_id=0)

        self.assertTrue(self.contract.is_approved_or_owner(spender=OWNER, token_id=0))
        self.assertTrue(self.contract.is_approved_or_owner(spender=OTHER, token_id=0))
        self.assertFalse(self.contract.is_approved_or_owner(spender=OTHER, token_id=1))
        self.assertFalse(self.contract.is_approved_or_owner(spender=THIRD, token_id=0))

    def test_is_approved_or_owner_nonexistent_token_fails(self):
        with self.assertRaises(NonexistentToken) as e:
            self.contract.is_approved_or_owner(spender=OWNER, token_id=42)

        self.assertEqual(str(e.exception), 'ERC721::_isApprovedOrOwner: operator query for nonexistent token')

    def test_exists(self):
        self.assertTrue(self.contract.exists(token_id=0))
        self.assertFalse(self.contract.exists(token_id=42))

    def test_big_token_ids(self):
        token_id = 2 ** 256 - 1

        self.contract.mint(to=OTHER, token_id=token_id)
        self.assertEqual(self.contract.owner_of(token_id=token_id), OTHER)

        self.contract.connect(OTHER).transfer_from(sender=OTHER, to=THIRD, token_id=token_id)
        self.assertEqual(self.contract.owner_of(token_id=token_id), THIRD)

        with self.assertRaises(InvalidTokenId):
            self.contract.mint(to=OTHER, token_id=2 ** 256)

    def test_balances_track_owners_over_many_operations(self):
        for token_id in range(2, 12):
            self.contract.mint(to=OTHER if token_id % 2 else THIRD, token_id=token_id)

        self.contract.connect(OTHER).transfer_from(sender=OTHER, to=OWNER, token_id=3)
        self.contract.connect(THIRD).safe_transfer_from(sender=THIRD, to=OTHER, token_id=4)
        self.contract.burn(token_id=5)
        self.contract.burn(token_id=0)

        self.assert_balances_match_owners()

    def test_state_is_committed_to_storage(self):
        self.contract.transfer_from(sender=OWNER, to=OTHER, token_id=0)

        self.assertEqual(self.c.raw_driver.pending_writes, {})
        self.assertEqual(self.c.raw_driver.driver.get('erc721.owners:0'), OTHER)
        self.assertEqual(self.contract.quick_read('balances', OTHER), 1)

    def test_direct_ledger_without_caller_cannot_transfer(self):
        ledger = ERC721(address=THIRD, driver=self.c.raw_driver, name='direct')

        ledger.mint(to=OWNER, token_id=7)

        with self.assertRaises(NotOwnerOrApproved):
            ledger.transfer_from(sender=OWNER, to=OTHER, token_id=7)

        with self.assertRaises(NotOwnerOrApproved) as e:
            ledger.set_approval_for_all(operator=OTHER, approved=True)

        self.assertEqual(str(e.exception), 'ERC721::setApprovalForAll: approve from unknown caller')

        with self.assertRaises(NotOwnerOrApproved):
            ledger.approve(to=OTHER, token_id=7)
