from .state_repository import (
    LearningStateRepository,
    LearningStateRepositoryError,
    deserialize_state,
    serialize_state,
)

__all__ = [
    "LearningStateRepository",
    "LearningStateRepositoryError",
    "deserialize_state",
    "serialize_state",
]
