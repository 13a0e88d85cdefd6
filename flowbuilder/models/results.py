"""Result objects returned by the store and canvas entry points."""

from pydantic import BaseModel

from flowbuilder.errors import FlowError


class MutationError(BaseModel):
    """serializable form of a FlowError."""

    code: str
    message: str
    node_id: str | None = None

    @classmethod
    def from_exception(cls, exc: FlowError) -> "MutationError":
        return cls(code=exc.code, message=exc.message, node_id=exc.node_id)


class MutationResult(BaseModel):
    """Outcome of one operation: ok with an optional node id, or an error."""

    ok: bool
    node_id: str | None = None
    version: int | None = None
    error: MutationError | None = None

    @classmethod
    def success(cls, node_id: str | None = None, version: int | None = None) -> "MutationResult":
        return cls(ok=True, node_id=node_id, version=version)

    @classmethod
    def failure(cls, exc: FlowError) -> "MutationResult":
        return cls(ok=False, node_id=exc.node_id, error=MutationError.from_exception(exc))

    def __bool__(self) -> bool:
        return self.ok
