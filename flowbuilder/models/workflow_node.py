"""Node records for the workflow graph.

A node carries a kind-specific payload (tagged by ``kind``) and its outgoing
links (tagged by ``mode``). Decision kinds (menu, branch) route through
labelled branch paths; every other kind is a plain sequence of children.
"""

from enum import Enum
from typing import Annotated, Literal, Self, Union

from pydantic import BaseModel, Field, model_validator


class NodeKind(str, Enum):
    """Kinds of steps a flow can contain."""

    start = "start"
    menu = "menu"
    tags = "tags"
    text_message = "text-message"
    end = "end"
    # action/branch workflow variant
    action = "action"
    branch = "branch"

    @property
    def is_decision(self) -> bool:
        """Decision kinds route through labelled branch paths."""
        return self in DECISION_KINDS

    @property
    def is_terminal(self) -> bool:
        return self is NodeKind.end


DECISION_KINDS = frozenset({NodeKind.menu, NodeKind.branch})


class Position(BaseModel):
    """canvas coordinates of a node's top-left corner."""

    model_config = {"frozen": True, "extra": "forbid"}

    x: float = 0.0
    y: float = 0.0

    def offset(self, dx: float, dy: float) -> "Position":
        return Position(x=self.x + dx, y=self.y + dy)


# --- payloads, one per kind ---


class StartPayload(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["start"] = "start"


class MenuPayload(BaseModel):
    """a question with an ordered list of answer options."""

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["menu"] = "menu"
    question: str = ""
    options: tuple[str, ...] = ()


class TagsPayload(BaseModel):
    """tags assigned to the conversation when this step is reached."""

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["tags"] = "tags"
    tags: tuple[str, ...] = ()


class MessagePayload(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["text-message"] = "text-message"
    message_content: str = ""


class EndPayload(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["end"] = "end"


class ActionPayload(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["action"] = "action"


class BranchPayload(BaseModel):
    """a condition split; options are the condition labels."""

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["branch"] = "branch"
    options: tuple[str, ...] = ()


NodePayload = Annotated[
    Union[
        StartPayload,
        MenuPayload,
        TagsPayload,
        MessagePayload,
        EndPayload,
        ActionPayload,
        BranchPayload,
    ],
    Field(discriminator="kind"),
]

# payload field name -> kinds that carry it
PAYLOAD_FIELDS: dict[str, frozenset[NodeKind]] = {
    "question": frozenset({NodeKind.menu}),
    "tags": frozenset({NodeKind.tags}),
    "message_content": frozenset({NodeKind.text_message}),
}


# --- outgoing links ---


class SequenceLinks(BaseModel):
    """unconditional successors, in order."""

    model_config = {"frozen": True, "extra": "forbid"}

    mode: Literal["sequence"] = "sequence"
    children: tuple[str, ...] = ()

    def targets(self) -> tuple[str, ...]:
        return self.children


class BranchLinks(BaseModel):
    """labelled alternatives of a decision node.

    ``paths`` maps each option label to its child id ("" while the slot is
    unattached). ``children`` holds unlabelled successors that were
    reconnected here when an intermediate step was deleted.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    mode: Literal["branches"] = "branches"
    paths: dict[str, str] = Field(default_factory=dict)
    children: tuple[str, ...] = ()

    def targets(self) -> tuple[str, ...]:
        return tuple(target for target in self.paths.values() if target) + self.children


NodeLinks = Annotated[Union[SequenceLinks, BranchLinks], Field(discriminator="mode")]


class WorkflowNode(BaseModel):
    """A single step in the flow."""

    model_config = {"frozen": True, "extra": "forbid"}

    id: str
    label: str
    position: Position = Field(default_factory=Position)
    payload: NodePayload
    links: NodeLinks = Field(default_factory=SequenceLinks)

    @property
    def kind(self) -> NodeKind:
        return NodeKind(self.payload.kind)

    @property
    def children(self) -> tuple[str, ...]:
        return self.links.children

    @property
    def branch_paths(self) -> dict[str, str] | None:
        """Branch paths of a decision node, None for every other kind."""
        if isinstance(self.links, BranchLinks):
            return self.links.paths
        return None

    @property
    def options(self) -> tuple[str, ...]:
        return getattr(self.payload, "options", ())

    def successors(self) -> tuple[str, ...]:
        """All resolved outgoing targets, labelled paths first."""
        return self.links.targets()

    def references(self, node_id: str) -> bool:
        return node_id in self.successors()

    @model_validator(mode="after")
    def validate_links(self) -> Self:
        """Keep the links variant and the decision options in step with the kind."""
        kind = self.kind
        if kind.is_decision:
            if not isinstance(self.links, BranchLinks):
                raise ValueError(f"{kind.value} node {self.id!r} must use branch links")
            if list(self.links.paths) != list(self.payload.options):
                raise ValueError(
                    f"branch paths of {self.id!r} must match its options "
                    f"{list(self.payload.options)}, got {list(self.links.paths)}"
                )
        elif not isinstance(self.links, SequenceLinks):
            raise ValueError(f"{kind.value} node {self.id!r} cannot use branch links")

        targets = self.successors()
        if kind.is_terminal and targets:
            raise ValueError(f"end node {self.id!r} cannot have outgoing links")
        if self.id in targets:
            raise ValueError(f"node {self.id!r} cannot link to itself")
        return self
