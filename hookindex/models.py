"""Core data models shared across hookindex components."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .constants import CONTENT_TYPE_SOURCE


@dataclass
class Source:
    """A registered origin of files to index."""

    name: str
    type: str
    repo_url: Optional[str] = None
    subfolder: Optional[str] = None
    local_path: Optional[str] = None
    token_env_var: Optional[str] = None
    branch: str = "main"
    content_type: str = CONTENT_TYPE_SOURCE
    enabled: bool = True
    id: Optional[int] = None
    last_indexed_at: Optional[str] = None


@dataclass
class IndexedFile:
    """Change-detection cache row for one file of a source."""

    source_id: int
    file_path: str
    mtime: Optional[float]
    content_hash: Optional[str]


@dataclass
class HookRecord:
    """A hook declaration extracted from a source file."""

    file_path: str
    line_number: int
    name: str
    type: str
    params: Optional[str] = None
    param_count: int = 0
    docblock: Optional[str] = None
    inferred_description: Optional[str] = None
    function_context: Optional[str] = None
    class_name: Optional[str] = None
    code_before: Optional[str] = None
    hook_line: Optional[str] = None
    code_after: Optional[str] = None
    is_dynamic: bool = False
    content_hash: str = ""

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["is_dynamic"] = 1 if self.is_dynamic else 0
        return row


@dataclass
class BlockRegistration:
    """A block (component) registration call site."""

    file_path: str
    line_number: int
    block_name: str
    registration_type: str
    block_title: Optional[str] = None
    block_category: Optional[str] = None
    block_attributes: Optional[str] = None
    supports: Optional[str] = None
    code_context: Optional[str] = None
    content_hash: str = ""

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ApiUsage:
    """A ``wp.<namespace>.<member>`` usage site."""

    file_path: str
    line_number: int
    api_call: str
    namespace: str
    method: str
    code_context: Optional[str] = None
    content_hash: str = ""

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DocumentPage:
    """A parsed narrative documentation page."""

    file_path: str
    slug: str
    title: str
    doc_type: str
    content: str
    category: Optional[str] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    code_examples: Optional[str] = None
    metadata: Optional[str] = None
    content_hash: str = ""

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ParseResult:
    """Everything one extraction engine produced for one file."""

    hooks: List[HookRecord] = field(default_factory=list)
    blocks: List[BlockRegistration] = field(default_factory=list)
    apis: List[ApiUsage] = field(default_factory=list)


@dataclass
class IndexStats:
    """Aggregate counters for an indexing run."""

    sources_processed: int = 0
    files_processed: int = 0
    files_skipped: int = 0
    hooks_inserted: int = 0
    hooks_updated: int = 0
    hooks_unchanged: int = 0
    hooks_removed: int = 0
    blocks_indexed: int = 0
    blocks_removed: int = 0
    apis_indexed: int = 0
    apis_removed: int = 0
    docs_inserted: int = 0
    docs_updated: int = 0
    docs_unchanged: int = 0
    docs_removed: int = 0
    errors: List[str] = field(default_factory=list)
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
