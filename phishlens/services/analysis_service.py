import math
import logging
from typing import Dict, List, Optional, Tuple
from sqlalchemy import func, desc
from sqlalchemy.orm import Session

from phishlens.core.phishing_detector import PhishingDetector, get_detector
from phishlens.models import Analysis, User
from phishlens.schemas import AnalysisResult, ThreatLevel

logger = logging.getLogger(__name__)


class AnalysisNotFoundError(LookupError):
    pass


class AnalysisAccessDeniedError(PermissionError):
    pass


class AnalysisService:
    """Runs the detector and owns the stored analysis records"""

    def __init__(self, db: Session, detector: Optional[PhishingDetector] = None):
        self.db = db
        self.detector = detector or get_detector()

    def analyze_text(self, user: User, input_text: str) -> Analysis:
        """Complete analysis pipeline: detect, persist, count"""
        # Raises EmptyInputError before anything is written
        result = self.detector.analyze(input_text)

        analysis = self._save_analysis(user, input_text, result)
        user.analysis_count = (user.analysis_count or 0) + 1
        self.db.commit()
        self.db.refresh(analysis)

        logger.info(
            f"Stored analysis {analysis.id} for user {user.id} - "
            f"{result.threat_level.value} ({result.risk_score})"
        )
        return analysis

    def get_history(self, user: User, page: int = 1, limit: int = 10) -> Tuple[List[Analysis], Dict]:
        page = max(page, 1)
        limit = max(limit, 1)

        query = self.db.query(Analysis).filter(Analysis.user_id == user.id)
        total = query.count()
        analyses = (
            query.order_by(desc(Analysis.created_at), desc(Analysis.id))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        pagination = {
            'page': page,
            'limit': limit,
            'total': total,
            'pages': math.ceil(total / limit)
        }
        return analyses, pagination

    def get_analysis(self, user: User, analysis_id: int) -> Analysis:
        analysis = self.db.query(Analysis).filter(Analysis.id == analysis_id).first()
        if not analysis:
            raise AnalysisNotFoundError(f"Analysis {analysis_id} not found")
        if analysis.user_id != user.id:
            raise AnalysisAccessDeniedError(f"Analysis {analysis_id} belongs to another user")
        return analysis

    def delete_analysis(self, user: User, analysis_id: int) -> None:
        analysis = self.get_analysis(user, analysis_id)
        self.db.delete(analysis)
        user.analysis_count = max((user.analysis_count or 0) - 1, 0)
        self.db.commit()
        logger.info(f"Deleted analysis {analysis_id} for user {user.id}")

    def get_stats(self, user: User) -> Dict:
        base = self.db.query(Analysis).filter(Analysis.user_id == user.id)
        total = base.count()
        avg_score = (
            self.db.query(func.avg(Analysis.risk_score))
            .filter(Analysis.user_id == user.id)
            .scalar()
        )

        distribution = {level.value: 0 for level in ThreatLevel}
        rows = (
            self.db.query(Analysis.threat_level, func.count(Analysis.id))
            .filter(Analysis.user_id == user.id)
            .group_by(Analysis.threat_level)
            .all()
        )
        for level, count in rows:
            distribution[level] = count

        recent = base.order_by(desc(Analysis.created_at), desc(Analysis.id)).limit(5).all()

        return {
            'total_analyses': total,
            'average_risk_score': int(round(avg_score)) if avg_score is not None else 0,
            'threat_level_distribution': distribution,
            'recent_analyses': recent
        }

    def _save_analysis(self, user: User, input_text: str, result: AnalysisResult) -> Analysis:
        payload = result.model_dump(mode="json", by_alias=True)

        analysis = Analysis(
            user_id=user.id,
            input_text=input_text,
            risk_score=result.risk_score,
            threat_level=result.threat_level.value,
            detected_threats=payload['detectedThreats'],
            suspicious_elements=payload['suspiciousElements'],
            url_analysis=payload['urlAnalysis'],
            phishing_tactics=payload['phishingTactics'],
            recommendations=payload['recommendations'],
            engine_metadata=payload['metadata']
        )
        self.db.add(analysis)
        self.db.flush()
        return analysis
