"""Common API request and response models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rulehub.generation.models import DependencyType, GeneratedPackage, OutputFormat, Rule, WizardConfiguration


class StatusResponse(BaseModel):
    """Generic status response."""

    status: str = Field(description="Operation status (ok, deleted, etc.)")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service status")
    version: str = Field(description="Application version")
    rules: int = Field(description="Number of rules in the catalog")
    formats: list[str] = Field(description="Supported package output formats")


class GenerateRequest(BaseModel):
    """Wizard configuration submitted for package generation."""

    model_config = ConfigDict(populate_by_name=True)

    stack_choices: dict[str, Any] = Field(alias="stackChoices")
    language_choices: dict[str, Any] = Field(alias="languageChoices")
    tool_preferences: dict[str, Any] = Field(alias="toolPreferences")
    environment_details: dict[str, Any] = Field(alias="environmentDetails")
    output_format: OutputFormat | None = Field(default=None, alias="outputFormat")
    custom_requirements: str | None = Field(default=None, alias="customRequirements", max_length=5000)
    user_id: str | None = Field(default=None, alias="userId", max_length=36)
    session_id: str | None = Field(default=None, alias="sessionId", max_length=100)

    def to_configuration(self, default_format: str) -> WizardConfiguration:
        """Convert to the engine's configuration type."""
        return WizardConfiguration(
            stack_choices=self.stack_choices,
            language_choices=self.language_choices,
            tool_preferences=self.tool_preferences,
            environment_details=self.environment_details,
            output_format=self.output_format.value if self.output_format else default_format,
            custom_requirements=self.custom_requirements,
            user_id=self.user_id,
            session_id=self.session_id,
        )


class PackageResponse(BaseModel):
    """Generated package descriptor (camelCase for API clients)."""

    id: str
    configurationId: str
    packageType: str
    downloadUrl: str | None = None
    fileSize: int
    ruleCount: int
    downloadCount: int
    expiresAt: datetime
    createdAt: datetime

    @classmethod
    def from_package(cls, package: GeneratedPackage) -> "PackageResponse":
        return cls(
            id=package.id,
            configurationId=package.configuration_id,
            packageType=package.package_type,
            downloadUrl=package.download_url,
            fileSize=package.file_size,
            ruleCount=package.rule_count,
            downloadCount=package.download_count,
            expiresAt=package.expires_at,
            createdAt=package.created_at,
        )


class GenerateResponse(BaseModel):
    """Response of a successful package generation."""

    success: bool = True
    package: PackageResponse


class CompatibilityRecordModel(BaseModel):
    """Compatibility side-table row."""

    technology: str = Field(..., min_length=1, max_length=100)
    version_pattern: str | None = Field(default=None, max_length=50)
    compatibility_type: str | None = Field(default=None, max_length=20)


class RuleCreate(BaseModel):
    """Request body for creating a rule."""

    title: str = Field(..., min_length=1, max_length=300)
    slug: str | None = Field(default=None, max_length=300, pattern=r"^[a-z0-9-]+$")
    content: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)
    compatibility: dict[str, Any] = Field(default_factory=dict)
    always_apply: bool = False
    rule_compatibility: list[CompatibilityRecordModel] = Field(default_factory=list)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Rule content cannot be empty or whitespace")
        return v


class RuleResponse(BaseModel):
    """Rule response model."""

    id: str
    title: str
    slug: str
    content: str
    tags: list[str]
    compatibility: dict[str, Any]
    always_apply: bool
    rule_compatibility: list[CompatibilityRecordModel] = Field(default_factory=list)

    @classmethod
    def from_rule(cls, rule: Rule) -> "RuleResponse":
        return cls(
            id=rule.id,
            title=rule.title,
            slug=rule.slug,
            content=rule.content,
            tags=rule.tag_list,
            compatibility=rule.compatibility or {},
            always_apply=bool(rule.always_apply),
            rule_compatibility=[
                CompatibilityRecordModel(
                    technology=c.technology,
                    version_pattern=c.version_pattern,
                    compatibility_type=c.compatibility_type,
                )
                for c in rule.compatibility_records
            ],
        )


class RuleListItem(BaseModel):
    """Rule list item (without full content)."""

    id: str
    title: str
    slug: str
    tags: list[str]
    always_apply: bool


class DependencyCreate(BaseModel):
    """Request body for declaring a dependency between rules."""

    depends_on_rule_id: str = Field(..., min_length=1, max_length=36)
    dependency_type: DependencyType
