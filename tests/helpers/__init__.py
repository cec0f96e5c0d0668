from .factories import mk_params, mk_payment, mk_account, raw_sign, sign_txn
from .fake_vault import FakeVault, ROOT_TOKEN, UNSEAL_KEY
from .fake_connector import FakeConnector, ConnectorRecorder
from .fake_bridge import FakeBridge

__all__ = [
    "mk_params",
    "mk_payment",
    "mk_account",
    "raw_sign",
    "sign_txn",
    "FakeVault",
    "ROOT_TOKEN",
    "UNSEAL_KEY",
    "FakeConnector",
    "ConnectorRecorder",
    "FakeBridge",
]
