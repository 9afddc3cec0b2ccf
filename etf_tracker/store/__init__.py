from .transactions import TransactionStore
