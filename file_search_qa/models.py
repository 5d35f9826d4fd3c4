from pydantic import AliasChoices, BaseModel, Field, validator
from typing import Any, Dict, List, Optional


# ========== REMOTE DESCRIPTORS ==========

class FileDescriptor(BaseModel):
    """An ingested file as reported by the File API."""
    name: str
    uri: Optional[str] = None
    display_name: Optional[str] = None
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None
    state: Optional[str] = None


class StoreDescriptor(BaseModel):
    """A File Search store."""
    name: str
    display_name: Optional[str] = None
    create_time: Optional[str] = None
    active_documents_count: Optional[int] = None
    size_bytes: Optional[int] = None


class ImportResult(BaseModel):
    """Terminal payload of a store import operation."""
    operation_name: str
    store_name: Optional[str] = None
    document_name: Optional[str] = None
    response: Dict[str, Any] = Field(default_factory=dict)


class Citation(BaseModel):
    segment: str
    confidence_score: Optional[float] = None


class GenerationResult(BaseModel):
    text: str
    citations: List[Citation] = Field(default_factory=list)


# ========== SLIDES ==========

class SlideSpec(BaseModel):
    title: str
    bullet_points: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("bullet_points", "bulletPoints"),
    )
    notes: str = ""
    citations: List[str] = Field(default_factory=list)


class SlideDeck(BaseModel):
    title: str = Field(..., min_length=1)
    subtitle: str = ""
    slides: List[SlideSpec] = Field(..., min_length=1)


class SlidesExport(BaseModel):
    presentation_id: str
    presentation_url: str
    slide_count: int
    title: str
    preview: List[SlideSpec]


# ========== REQUESTS ==========

class CreateStoreRequest(BaseModel):
    display_name: Optional[str] = Field(None, max_length=512)


class ImportFileRequest(BaseModel):
    file_uri: str = Field(..., min_length=1)

    @validator('file_uri')
    def validate_file_uri(cls, v):
        """Reject whitespace-only URIs."""
        if not v.strip():
            raise ValueError("file_uri cannot be empty")
        return v.strip()


class QueryRequest(BaseModel):
    """Natural-language query scoped to one or more stores."""
    query: str = Field(..., min_length=1, max_length=10000)
    file_search_store_names: List[str] = Field(default_factory=list)
    create_slides: bool = False

    @validator('query')
    def validate_query(cls, v):
        """Ensure query is not just whitespace."""
        if not v.strip():
            raise ValueError("Query cannot be empty or only whitespace")
        return v.strip()

    @validator('file_search_store_names', pre=True)
    def coerce_store_names(cls, v):
        """A single store name is accepted as a one-element list."""
        if isinstance(v, str):
            return [v]
        return v


class SlidesRequest(BaseModel):
    topic: str = Field(..., min_length=1, max_length=2000)
    file_search_store_names: List[str] = Field(default_factory=list)

    @validator('topic')
    def validate_topic(cls, v):
        if not v.strip():
            raise ValueError("Topic is required")
        return v.strip()


# ========== RESPONSES ==========

class UploadResponse(BaseModel):
    """Response after uploading and processing a file."""
    success: bool = True
    file: FileDescriptor


class ListFilesResponse(BaseModel):
    success: bool = True
    files: List[FileDescriptor]


class StoreResponse(BaseModel):
    success: bool = True
    store: StoreDescriptor


class ListStoresResponse(BaseModel):
    success: bool = True
    stores: List[StoreDescriptor]


class DeleteResponse(BaseModel):
    success: bool = True
    message: str


class ImportFileResponse(BaseModel):
    success: bool = True
    imported_file: ImportResult
    operation_name: str


class QueryResponse(BaseModel):
    """Answer plus grounding citations; slides only when requested."""
    success: bool = True
    answer: str
    citations: List[Citation]
    slides: Optional[SlidesExport] = None


class SlidesResponse(SlidesExport):
    success: bool = True


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    gemini_configured: bool
    slides_configured: bool
