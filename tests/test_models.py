from bithive_relayer.deposits import DepositRef
from bithive_relayer.models import Account, Deposit


class TestDeposit:
    def test_camel_case_payload(self) -> None:
        deposit = Deposit.model_validate(
            {
                "depositTxHash": "aa" * 32,
                "depositVout": 2,
                "withdrawTxHash": "bb" * 32,
                "status": "WithdrawConfirmed",
                "amount": 5000,
                "unknownField": True,
            }
        )

        assert deposit.ref == DepositRef("aa" * 32, 2)
        assert deposit.withdraw_tx_hash == "bb" * 32
        assert deposit.deposit_tx_block_height is None

    def test_dump_uses_relayer_keys(self) -> None:
        deposit = Deposit(deposit_tx_hash="aa" * 32, status="DepositProcessing", amount=5000)

        dumped = deposit.model_dump(by_alias=True, exclude_none=True)

        assert dumped == {
            "depositTxHash": "aa" * 32,
            "depositVout": 0,
            "status": "DepositProcessing",
            "amount": 5000,
        }


class TestAccount:
    def test_without_pending_psbt(self) -> None:
        account = Account.model_validate({"publicKey": "02" + "11" * 32})

        assert account.pending_sign_psbt is None
