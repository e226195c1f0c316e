"""Messages exchanged between the coordinator and its search workers.

Workers put plain dicts on the coordinator's inbox so they survive a process
boundary unchanged; the coordinator validates them back into models with
``parse_report``. Counters cross the boundary as decimal strings.
"""
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


# Unbounded counters travel as decimal text, never as floats.
DecimalCount = Annotated[str, Field(pattern=r"^[0-9]+$")]


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump()


class StartMessage(Message):
    target_public: str
    worker_id: int


class ProgressMessage(Message):
    type: Literal["progress"] = "progress"
    worker_id: int
    checked: DecimalCount

    @property
    def count(self) -> int:
        return int(self.checked)


class FoundMessage(Message):
    type: Literal["found"] = "found"
    worker_id: int
    private: str
    checked: DecimalCount

    @property
    def count(self) -> int:
        return int(self.checked)


class ErrorMessage(Message):
    type: Literal["error"] = "error"
    worker_id: int
    error: str
    checked: DecimalCount = "0"

    @property
    def count(self) -> int:
        return int(self.checked)


ReportMessage = Annotated[
    Union[ProgressMessage, FoundMessage, ErrorMessage],
    Field(discriminator="type"),
]

_report_adapter: TypeAdapter[ReportMessage] = TypeAdapter(ReportMessage)


def progress(worker_id: int, checked: int) -> dict[str, Any]:
    return ProgressMessage(worker_id=worker_id, checked=str(checked)).to_wire()


def found(worker_id: int, private: str, checked: int) -> dict[str, Any]:
    return FoundMessage(worker_id=worker_id, private=private, checked=str(checked)).to_wire()


def error(worker_id: int, exc: BaseException, checked: int) -> dict[str, Any]:
    return ErrorMessage(
        worker_id=worker_id,
        error=f"{type(exc).__name__}: {exc}",
        checked=str(checked),
    ).to_wire()


def parse_report(data: Any) -> ProgressMessage | FoundMessage | ErrorMessage:
    """Validate an inbound worker report. Raises pydantic.ValidationError on bad input."""
    if isinstance(data, (ProgressMessage, FoundMessage, ErrorMessage)):
        return data
    return _report_adapter.validate_python(data)
