from ._schema import SCHEMA_VERSION, SCHEMA_SQL
from .users import UserRepo
from .rigs import RigRepo
from .balances import BalanceRepo
from .transactions import TransactionRepo
from .exchanges import ExchangeRepo
from .payments import PaymentRepo
from .manager import StorageManager

__all__ = [
    "SCHEMA_VERSION",
    "SCHEMA_SQL",
    "UserRepo",
    "RigRepo",
    "BalanceRepo",
    "TransactionRepo",
    "ExchangeRepo",
    "PaymentRepo",
    "StorageManager",
]
