from dbtunnel.backends.cosmos import CosmosBackend
from dbtunnel.backends.sql import SqlAlchemyBackend


class BackendRegistry:
    """
    Maps backend kinds to backend implementations.
    """

    _REGISTRY = {
        "COSMOS": CosmosBackend,
        "SQL": SqlAlchemyBackend,
    }

    @classmethod
    def get_backend(cls, kind: str):
        if not kind:
            raise ValueError("Backend kind must not be empty")

        key = kind.upper()

        if key not in cls._REGISTRY:
            raise ValueError(
                f"No backend registered for: {kind}. "
                f"Supported backends: {sorted(k.lower() for k in cls._REGISTRY)}"
            )

        return cls._REGISTRY[key]
