class StoreError(RuntimeError):
    """Хранилище не смогло выполнить чтение или запись."""
