"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation and self-documenting fields (Field) without coupling the
  core to I/O libraries.
- Every validator, scorer and dashboard returns one of these records, so the
  CLI and the JSON exporter can treat them uniformly.

Note:
- These models describe *what* the vault information is, not *how* it is read.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationIssue(BaseModel):
    """A single finding produced by a validator."""

    line: int = Field(
        default=1,
        ge=1,
        description="1-based line in the file the issue refers to.",
    )
    message: str = Field(
        ...,
        min_length=1,
        description="Human readable description of the problem.",
    )
    severity: Severity = Field(
        default=Severity.ERROR,
        description="How serious the finding is.",
    )
    category: str | None = Field(
        default=None,
        description="Optional grouping (structure, content, layout, color...).",
    )
    suggestion: str | None = Field(
        default=None,
        description="Optional hint on how to fix the issue.",
    )


class FrontmatterValidationResult(BaseModel):
    is_valid: bool = True
    has_frontmatter: bool = False
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)
    present_fields: list[str] = Field(default_factory=list)
    fields: dict[str, Any] = Field(
        default_factory=dict,
        description="Parsed frontmatter mapping (empty when parsing failed).",
    )


class CodeBlockValidationResult(BaseModel):
    is_valid: bool = True
    total_blocks: int = Field(default=0, ge=0)
    compliant_blocks: int = Field(default=0, ge=0)
    non_compliant_blocks: int = Field(default=0, ge=0)
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


class FileValidationResult(BaseModel):
    file_path: str
    frontmatter: FrontmatterValidationResult
    code_blocks: CodeBlockValidationResult
    overall_compliance: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Combined frontmatter + code block compliance (%).",
    )


class IssueCount(BaseModel):
    issue: str
    count: int = Field(..., ge=1)


class ProjectValidationSummary(BaseModel):
    frontmatter_compliance: float = 0.0
    code_block_compliance: float = 0.0
    common_issues: list[IssueCount] = Field(default_factory=list)


class ProjectValidationResult(BaseModel):
    """Aggregate of a full vault validation run."""

    total_files: int = 0
    compliant_files: int = 0
    non_compliant_files: int = 0
    overall_compliance: float = 0.0
    results: list[FileValidationResult] = Field(default_factory=list)
    summary: ProjectValidationSummary = Field(default_factory=ProjectValidationSummary)
    errors: list[str] = Field(
        default_factory=list,
        description="Files that could not be read, as `path: reason`.",
    )


class LintStats(BaseModel):
    total_files: int = 0
    valid_files: int = 0
    invalid_files: int = 0
    orphaned_files: int = 0


class LintReport(BaseModel):
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    stats: LintStats = Field(default_factory=LintStats)

    @property
    def passed(self) -> bool:
        return not self.issues


class CanvasNode(BaseModel):
    """Node of an Obsidian JSON canvas.

    Unknown keys are preserved so that a canvas can be re-written untouched.
    """

    model_config = ConfigDict(extra="allow")

    id: Any = None
    type: Any = None
    x: Any = None
    y: Any = None
    width: Any = None
    height: Any = None
    text: Any = None
    file: Any = None
    url: Any = None
    label: Any = None
    color: Any = None


class CanvasEdge(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Any = None
    from_node: Any = Field(default=None, alias="fromNode")
    to_node: Any = Field(default=None, alias="toNode")
    from_side: Any = Field(default=None, alias="fromSide")
    to_side: Any = Field(default=None, alias="toSide")
    label: Any = None
    color: Any = None


class CanvasDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    nodes: list[CanvasNode] = Field(default_factory=list)
    edges: list[CanvasEdge] = Field(default_factory=list)


class CanvasFile(BaseModel):
    """Analysis of a single `.canvas` file."""

    path: str
    name: str
    directory: str
    size: int = Field(..., ge=0, description="File size in bytes.")
    last_modified: datetime
    node_count: int = 0
    connection_count: int = 0
    complexity: float = 0.0
    health: float = Field(default=0.0, ge=0.0, le=100.0)
    status: str = "Unknown"
    canvas_type: str = "Unknown"
    issues: list[ValidationIssue] = Field(default_factory=list)


class CanvasMetrics(BaseModel):
    total_canvases: int = 0
    total_nodes: int = 0
    total_connections: int = 0
    average_complexity: float = 0.0
    total_size: int = 0
    health_score: float = 0.0
    last_updated: datetime = Field(default_factory=datetime.now)


class DirectoryCanvasStats(BaseModel):
    directory: str
    canvas_count: int
    total_nodes: int
    total_size: int
    average_health: float
    status: str


class BucketStats(BaseModel):
    label: str
    count: int
    percentage: float
    average: float


class CanvasReport(BaseModel):
    metrics: CanvasMetrics = Field(default_factory=CanvasMetrics)
    canvases: list[CanvasFile] = Field(default_factory=list)
    by_directory: list[DirectoryCanvasStats] = Field(default_factory=list)
    by_complexity: list[BucketStats] = Field(default_factory=list)
    by_size: list[BucketStats] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class TemplateConfig(BaseModel):
    """Input of the template creation wizard."""

    name: str = Field(..., description="Template name, no spaces (becomes `<name>-Template.md`).")
    type: str = Field(default="template", description="Vault document type.")
    category: str = Field(default="general")
    section: str | None = Field(
        default=None,
        description="Vault section number (`01`..`06`, `10`); auto-detected when empty.",
    )
    priority: str = Field(default="medium", pattern=r"^(low|medium|high)$")
    description: str = Field(default="")
    tags: list[str] = Field(default_factory=lambda: ["template", "documentation"])
    include_examples: bool = True
    include_sections: list[str] = Field(
        default_factory=lambda: ["Overview", "Usage", "Examples"],
    )


class TemplateMetrics(BaseModel):
    """Usage metrics for one template file."""

    file_path: str
    name: str
    type: str = "unknown"
    category: str = "general"
    size: int = 0
    complexity: int = 0
    last_modified: datetime
    backlinks: int = 0
    outbound_links: int = 0
    usage_score: float = Field(default=0.0, ge=0.0, le=100.0)
    recommendations: list[str] = Field(default_factory=list)


class TemplateAnalyticsReport(BaseModel):
    timestamp: datetime = Field(default_factory=datetime.now)
    total_templates: int = 0
    average_usage_score: float = 0.0
    templates: list[TemplateMetrics] = Field(default_factory=list)
    most_used: list[TemplateMetrics] = Field(default_factory=list)
    least_used: list[TemplateMetrics] = Field(default_factory=list)
    recommendations_by_category: dict[str, list[str]] = Field(default_factory=dict)
    optimization_opportunities: list[str] = Field(default_factory=list)


class DataQuality(BaseModel):
    """Heuristic quality scores of an arbitrary record, each in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    completeness: float = Field(..., ge=0.0, le=1.0)
    accuracy: float = Field(..., ge=0.0, le=1.0)
    freshness: float = Field(..., ge=0.0, le=1.0)
    consistency: float = Field(..., ge=0.0, le=1.0)
    validity: float = Field(..., ge=0.0, le=1.0)
    overall: float = Field(..., ge=0.0, le=1.0)


class CacheStats(BaseModel):
    size: int
    max_size: int
    hits: int = 0
    misses: int = 0
    hit_rate: float = Field(default=0.0, ge=0.0, le=1.0)


class CleanupResult(BaseModel):
    archived: list[str] = Field(default_factory=list, description="Stale notes moved to the archive.")
    cleaned: list[str] = Field(
        default_factory=list,
        description="Empty, orphaned and duplicate notes moved to the archive.",
    )
    errors: list[str] = Field(default_factory=list)
    space_saved: int = Field(default=0, ge=0, description="Bytes moved out of the active vault.")
    dry_run: bool = False


class VaultFile(BaseModel):
    path: str = Field(..., description="Vault-relative POSIX path.")
    name: str
    extension: str
    size: int = 0
    created_at: datetime
    modified_at: datetime
    content: str = ""
    frontmatter: dict[str, Any] | None = None
    tags: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list, description="Outbound link targets (stems).")
    backlinks: list[str] = Field(default_factory=list, description="Notes that link here.")


class VaultFolder(BaseModel):
    path: str
    name: str
    files: list[VaultFile] = Field(default_factory=list)
    subfolders: list[VaultFolder] = Field(default_factory=list)
    file_count: int = 0
    total_size: int = 0


class VaultMetrics(BaseModel):
    total_files: int = 0
    total_folders: int = 0
    total_size: int = 0
    total_links: int = 0
    total_tags: int = 0
    files_with_frontmatter: int = 0
    orphaned_files: int = 0


class CategoryScore(BaseModel):
    score: float = Field(..., ge=0.0, le=100.0)
    issues: int = Field(default=0, ge=0)


class OverallHealth(BaseModel):
    score: float = Field(..., ge=0.0, le=100.0)
    grade: str = Field(..., pattern=r"^[ABCDF]$")


class HealthMetrics(BaseModel):
    overall: OverallHealth
    categories: dict[str, CategoryScore]
    recommendations: list[str] = Field(default_factory=list)
    files_checked: int = 0
    last_updated: datetime = Field(default_factory=datetime.now)


class VaultSettingsBlock(BaseModel):
    auto_organize: bool = Field(default=True, alias="autoOrganize")
    validate_on_save: bool = Field(default=True, alias="validateOnSave")
    enable_monitoring: bool = Field(default=True, alias="enableMonitoring")
    log_level: str = Field(default="info", alias="logLevel")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class VaultConfig(BaseModel):
    """Contents of `.vault-config.json`."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: str = "1.0.0"
    created: str
    last_modified: str = Field(..., alias="lastModified")
    settings: VaultSettingsBlock = Field(default_factory=VaultSettingsBlock)
    paths: dict[str, str] = Field(default_factory=dict)
    standards: dict[str, Any] = Field(default_factory=dict)


class VaultStatusMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    total_files: int = Field(default=0, alias="totalFiles")
    organized_files: int = Field(default=0, alias="organizedFiles")
    validated_files: int = Field(default=0, alias="validatedFiles")
    error_count: int = Field(default=0, alias="errorCount")


class VaultStatus(BaseModel):
    """Contents of `.vault-status.json`."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    health: str = "unknown"
    last_validation: str | None = Field(default=None, alias="lastValidation")
    last_organization: str | None = Field(default=None, alias="lastOrganization")
    last_modified: str | None = Field(default=None, alias="lastModified")
    issues: list[str] = Field(default_factory=list)
    metrics: VaultStatusMetrics = Field(default_factory=VaultStatusMetrics)


class VaultStateCheck(BaseModel):
    valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    files_checked: int = 0
