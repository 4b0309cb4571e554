from __future__ import annotations

from enum import StrEnum, auto
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CONFIG_FILE_NAME = "cartographer.config.json"

CONFIG_LOCATIONS: tuple[str, ...] = (
    CONFIG_FILE_NAME,
    ".cartographer.json",
    ".vscode/cartographer.json",
    "cartographer.config.yaml",
    "cartographer.config.yml",
)

IGNORE_FILE_NAME = ".gitignore"


class FileType(StrEnum):
    """Coarse categorization of files shown in the structure tree.

    This is a heuristic classification based on file extensions only; content
    sniffing happens later in the classifier.
    """

    TEXT = auto()
    IMAGE = auto()
    ARCHIVE = auto()
    PYTHON = auto()
    TOML = auto()
    JSON = auto()
    MARKDOWN = auto()
    YAML = auto()
    HTML = auto()
    CSS = auto()
    JAVASCRIPT = auto()
    TYPESCRIPT = auto()
    BASH = auto()
    RUST = auto()
    GO = auto()
    PHP = auto()
    SQL = auto()
    JAVA = auto()
    C = auto()
    CPP = auto()
    XML = auto()
    INI = auto()
    OTHER = auto()


EXT2TYPE: dict[str, FileType] = {
    ".bash": FileType.BASH,
    ".bmp": FileType.IMAGE,
    ".c": FileType.C,
    ".cc": FileType.CPP,
    ".cfg": FileType.INI,
    ".cjs": FileType.JAVASCRIPT,
    ".conf": FileType.INI,
    ".cpp": FileType.CPP,
    ".css": FileType.CSS,
    ".csv": FileType.TEXT,
    ".cxx": FileType.CPP,
    ".gif": FileType.IMAGE,
    ".go": FileType.GO,
    ".gz": FileType.ARCHIVE,
    ".h": FileType.C,
    ".hpp": FileType.CPP,
    ".htm": FileType.HTML,
    ".html": FileType.HTML,
    ".ico": FileType.IMAGE,
    ".ini": FileType.INI,
    ".java": FileType.JAVA,
    ".jpeg": FileType.IMAGE,
    ".jpg": FileType.IMAGE,
    ".js": FileType.JAVASCRIPT,
    ".json": FileType.JSON,
    ".jsx": FileType.JAVASCRIPT,
    ".markdown": FileType.MARKDOWN,
    ".md": FileType.MARKDOWN,
    ".mjs": FileType.JAVASCRIPT,
    ".php": FileType.PHP,
    ".png": FileType.IMAGE,
    ".py": FileType.PYTHON,
    ".rs": FileType.RUST,
    ".sh": FileType.BASH,
    ".sql": FileType.SQL,
    ".svg": FileType.IMAGE,
    ".tar": FileType.ARCHIVE,
    ".toml": FileType.TOML,
    ".ts": FileType.TYPESCRIPT,
    ".tsx": FileType.TYPESCRIPT,
    ".txt": FileType.TEXT,
    ".webp": FileType.IMAGE,
    ".xml": FileType.XML,
    ".yaml": FileType.YAML,
    ".yml": FileType.YAML,
    ".zip": FileType.ARCHIVE,
    ".zsh": FileType.BASH,
}


def guess_file_type(path: Path | str) -> FileType:
    """Heuristic guess of the coarse file type based on extension.

    Args:
        path (Path | str): The file path to guess the type for.

    Returns:
        FileType: The guessed file type, or FileType.OTHER if unknown.
    """
    return EXT2TYPE.get(Path(path).suffix.lower(), FileType.OTHER)


class DocumentationType(StrEnum):
    """What a run documents: the tree, the file contents, or both."""

    STRUCTURE = "structure"
    DOCUMENTATION = "documentation"
    BOTH = "both"

    @property
    def wants_structure(self) -> bool:
        return self in {DocumentationType.STRUCTURE, DocumentationType.BOTH}

    @property
    def wants_content(self) -> bool:
        return self in {DocumentationType.DOCUMENTATION, DocumentationType.BOTH}


class OutputFormat(StrEnum):
    """Serialized encodings of the output payload."""

    JSON = "json"
    TEXT = "txt"
    CSV = "csv"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class OverrideRule(_CamelModel):
    """A named bundle granting bespoke inclusion and size treatment."""

    include: list[str] = Field(default_factory=list, description="Glob patterns of the override.")
    max_size: int | None = Field(default=None, ge=0, description="Size limit for matching files.")


class DocumentationOptions(_CamelModel):
    """Requested output shape."""

    type: DocumentationType = DocumentationType.BOTH
    format: OutputFormat = OutputFormat.JSON
    output_path: str = "./documentation.json"


class CartographerConfig(_CamelModel):
    """Merged configuration of one run.

    Attributes:
        version: Schema version of the configuration file.
        include: Glob patterns of paths to include.
        exclude: Glob patterns of paths to exclude; they beat every inclusion.
        max_file_size: Global size limit in bytes for documented files.
        skip_binary_files: Drop content that looks binary.
        skip_generated_files: Drop content carrying generated-code markers.
        custom_files: Overrides keyed by name, evaluated in declaration order.
        documentation: Requested output shape.
    """

    version: str = "1.0"
    include: list[str] = Field(default_factory=lambda: ["**/*"])
    exclude: list[str] = Field(
        default_factory=lambda: [
            "node_modules/**",
            ".git/**",
            "dist/**",
            "out/**",
            "**/*.min.js",
            "**/*.map",
        ],
    )
    max_file_size: int = Field(default=500_000, ge=0)
    skip_binary_files: bool = True
    skip_generated_files: bool = True
    custom_files: dict[str, OverrideRule] = Field(default_factory=dict)
    documentation: DocumentationOptions = Field(default_factory=DocumentationOptions)


class FileRecord(BaseModel):
    """One documented file.

    Attributes:
        path: Path relative to the project root, with POSIX separators.
        content: Decoded text content.
        size: File size in bytes.
        extension: File extension including the leading dot (may be empty).
        tokens: Heuristic token estimate of ``content``.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="File path relative to the project root")
    content: str = Field("", description="Decoded text content")
    size: int = Field(..., ge=0, description="File size in bytes")
    extension: str = Field("", description="File extension")
    tokens: int = Field(0, ge=0, description="Approximate token count")
