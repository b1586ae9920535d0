"""
Request and response models for the TrixDB API.

The API speaks camelCase JSON; models use snake_case attributes with camelCase
aliases and accept either form on input.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class TrixDBModel(BaseModel):
    """Base model with the API's camelCase wire format"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MemoryType(str, Enum):
    """Enum for memory content types"""

    TEXT = "text"
    MARKDOWN = "markdown"
    URL = "url"
    AUDIO = "audio"


class TranscriptStatus(str, Enum):
    """Transcription state of an audio memory"""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class SearchMode(str, Enum):
    """Search strategy used when listing memories with a query"""

    SEMANTIC = "semantic"
    KEYWORD = "keyword"
    HYBRID = "hybrid"


class JobStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    DELAYED = "delayed"


class PaginationMetadata(TrixDBModel):
    total: int = 0
    page: int = 1
    limit: int = 0
    has_more: bool = False


class PaginatedResponse(TrixDBModel, Generic[T]):
    """One page of results from a list endpoint"""

    data: list[T] = Field(default_factory=list)
    pagination: PaginationMetadata | None = None


class Memory(TrixDBModel):
    """A stored memory"""

    id: str
    content: str
    space_id: str | None = None
    type: MemoryType = MemoryType.TEXT
    embedding: list[float] | None = None
    tags: list[str] | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    transcript_status: TranscriptStatus | None = None


class CreateMemoryRequest(TrixDBModel):
    content: str = Field(description="Content of the memory")
    type: MemoryType = MemoryType.TEXT
    tags: list[str] | None = None
    metadata: dict[str, Any] | None = None
    space_id: str | None = Field(
        default=None, description="Space to create the memory in"
    )
    embedding: list[float] | None = Field(
        default=None, description="Precomputed embedding; the server embeds if omitted"
    )


class UpdateMemoryRequest(TrixDBModel):
    """Partial update; only fields that are set are sent"""

    content: str | None = None
    tags: list[str] | None = None
    metadata: dict[str, Any] | None = None
    embedding: list[float] | None = None


class ListMemoriesRequest(TrixDBModel):
    q: str | None = None
    mode: SearchMode | None = None
    limit: int | None = None
    page: int | None = None
    offset: int | None = None
    tags: list[str] | None = None
    type: MemoryType | None = None
    space_id: str | None = None
    sort_by: str | None = None
    sort_order: str | None = None


class BulkError(TrixDBModel):
    index: int
    message: str


class BulkResult(TrixDBModel):
    """Outcome of a bulk create"""

    success: int = 0
    failed: int = 0
    errors: list[BulkError] | None = None


class Space(TrixDBModel):
    """A named container for memories"""

    id: str
    name: str
    description: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CreateSpaceRequest(TrixDBModel):
    name: str
    description: str | None = None
    metadata: dict[str, Any] | None = None


class UpdateSpaceRequest(TrixDBModel):
    name: str | None = None
    description: str | None = None
    metadata: dict[str, Any] | None = None


class Job(TrixDBModel):
    """A background job on one of the server's queues"""

    id: str
    queue: str
    name: str = ""
    data: dict[str, Any] | None = None
    status: JobStatus
    progress: int | None = None
    return_value: Any | None = None
    failed_reason: str | None = None
    attempts: int = 0
    created_at: datetime | None = None
    processed_at: datetime | None = None
    finished_at: datetime | None = None


class QueueStats(TrixDBModel):
    name: str
    waiting: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0
    delayed: int = 0


class JobStats(TrixDBModel):
    queues: list[QueueStats] = Field(default_factory=list)


class ListJobsRequest(TrixDBModel):
    queue: str | None = None
    status: JobStatus | None = None
    limit: int | None = None
    offset: int | None = None
