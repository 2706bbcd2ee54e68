from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ExperienceLevel = Literal["beginner", "intermediate", "advanced"]
PromptRole = Literal["system", "user", "assistant"]
ResolutionTier = Literal["enhanced", "legacy", "fallback"]


class RepositoryCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    full_name: str
    description: Optional[str] = None
    stars: int = 0
    url: str
    language: Optional[str] = None
    forks: int = 0
    topics: List[str] = Field(default_factory=list)
    license: Optional[str] = None
    updated_at: Optional[str] = None


class UserPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tech_stack: List[str] = Field(default_factory=list, alias="techStack")
    experience_level: ExperienceLevel = Field("intermediate", alias="experienceLevel")
    interests: List[str] = Field(default_factory=list)
    primary_cluster: Optional[str] = Field(None, alias="primaryCluster")
    secondary_clusters: List[str] = Field(default_factory=list, alias="secondaryClusters")
    project_type: Optional[str] = Field(None, alias="projectType")
    goals: List[str] = Field(default_factory=list)
    project_types: List[str] = Field(default_factory=list, alias="projectTypes")
    activity_preference: Optional[str] = Field(None, alias="activityPreference")
    popularity_weight: Optional[str] = Field(None, alias="popularityWeight")
    license_preference: List[str] = Field(default_factory=list, alias="licensePreference")
    repo_size: List[str] = Field(default_factory=list, alias="repoSize")
    documentation_importance: Optional[str] = Field(None, alias="documentationImportance")


class PromptMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: PromptRole
    content: str


class Recommendation(BaseModel):
    name: str
    description: str = ""
    reason: str = ""
    url: Optional[str] = None
    stars: Optional[int] = None


class ResolutionResult(BaseModel):
    recommendations: List[Recommendation] = Field(default_factory=list)
    tier: ResolutionTier = "fallback"
    warnings: List[str] = Field(default_factory=list)


class RecommendationRequest(BaseModel):
    query: str = ""
    preferences: Optional[UserPreferences] = None


class RepoSearchResponse(BaseModel):
    repos: List[RepositoryCandidate] = Field(default_factory=list)
