from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from datetime import datetime

# ==========================================
# 🧱 SHARED MODELS
# ==========================================

class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ThreatLevel(str, Enum):
    SAFE = "Safe"
    LOW_RISK = "LowRisk"
    MEDIUM_RISK = "MediumRisk"
    HIGH_RISK = "HighRisk"
    CRITICAL = "Critical"


class UrlStatus(str, Enum):
    SAFE = "safe"
    QUESTIONABLE = "questionable"
    SUSPICIOUS = "suspicious"
    MALICIOUS = "malicious"

# ==========================================
# 🔍 DETECTION ENGINE OUTPUT
# ==========================================

class MatchedElement(FrozenCamelModel):
    text: str
    start_index: int
    end_index: int
    type: str
    risk_level: str
    explanation: str
    recommendation: str


class UrlFinding(FrozenCamelModel):
    url: str
    domain: str
    status: UrlStatus
    issues: List[str] = []
    risk_score: int = 0


class ThreatSummary(FrozenCamelModel):
    type: str
    description: str
    severity: str
    count: int
    keywords: List[str]


class Tactic(FrozenCamelModel):
    name: str
    description: str
    confidence: float = Field(gt=0, le=1)


class AnalysisMetadata(FrozenCamelModel):
    analysis_time_ms: int
    version: str
    engine_name: str


class AnalysisResult(FrozenCamelModel):
    """The detection engine's sole output"""
    risk_score: int = Field(ge=0, le=100)
    threat_level: ThreatLevel
    detected_threats: List[ThreatSummary] = []
    suspicious_elements: List[MatchedElement] = []
    url_analysis: List[UrlFinding] = []
    phishing_tactics: List[Tactic] = []
    recommendations: List[str] = []
    metadata: AnalysisMetadata

# ==========================================
# 📥 INPUT MODELS
# ==========================================

class AnalyzeRequest(CamelModel):
    input_text: Optional[str] = None


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyOTPRequest(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class ResendOTPRequest(BaseModel):
    email: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

# ==========================================
# 📤 RESPONSE MODELS
# ==========================================

class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    is_verified: bool
    analysis_count: int = 0
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class AnalysisRecord(CamelModel):
    """Stored analysis as returned to the owner"""
    id: int
    user_id: int
    input_text: str
    risk_score: int
    threat_level: str
    detected_threats: List[Dict[str, Any]] = []
    suspicious_elements: List[Dict[str, Any]] = []
    url_analysis: List[Dict[str, Any]] = []
    phishing_tactics: List[Dict[str, Any]] = []
    recommendations: List[str] = []
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="engine_metadata")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class AnalysisListItem(CamelModel):
    id: int
    user_id: int
    risk_score: int
    threat_level: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class AnalysisStats(CamelModel):
    total_analyses: int
    average_risk_score: int
    threat_level_distribution: Dict[str, int]
    recent_analyses: List[AnalysisListItem]
