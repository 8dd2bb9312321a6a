from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Descriptive fields produced by the extraction rule set, in storage order.
RECORD_FIELDS: List[str] = [
    'title', 'company', 'salary', 'location', 'experience', 'level', 'working_form',
    'deadline', 'shift', 'degree', 'age', 'quantity', 'field', 'description',
    'requirement', 'benefit', 'company_logo', 'company_size', 'company_headquarters',
    'contact_name', 'contact_phone',
]


class JobRecord(BaseModel):
    """One crawled posting. Every descriptive field is a string, empty when absent."""
    model_config = ConfigDict(populate_by_name=True)

    link: str = Field(min_length=1)
    job_type: str = ""
    title: str = ""
    company: str = ""
    salary: str = ""
    location: str = ""
    experience: str = ""
    level: str = ""
    working_form: str = Field("", alias="workingForm")
    deadline: str = ""
    shift: str = ""
    degree: str = ""
    age: str = ""
    quantity: str = ""
    field: str = ""
    description: str = ""
    requirement: str = ""
    benefit: str = ""
    company_logo: str = Field("", alias="companyLogo")
    company_size: str = Field("", alias="companySize")
    company_headquarters: str = Field("", alias="companyHeadquarters")
    contact_name: str = Field("", alias="contactName")
    contact_phone: str = Field("", alias="contactPhone")

    @field_validator("job_type", *RECORD_FIELDS, mode="before")
    @classmethod
    def none_to_empty(cls, v):
        if v is None:
            return ""
        return v


class SearchQuery(BaseModel):
    page: int = 1
    limit: int = 10
    keyword: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[str] = None

    @field_validator("keyword", "location", "job_type", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SearchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")
    data: List[JobRecord] = Field(default_factory=list)


@dataclass(frozen=True)
class CrawlTask:
    job_type: str
    page_index: int


@dataclass(frozen=True)
class DiscoveredLink:
    link: str
    job_type: str


@dataclass
class CrawlStats:
    discovered: int = 0
    extracted: int = 0
    failed: int = 0
    cancelled: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
