"""
Behavioral signal detection for lead scoring.

Scans visitor messages for sales-qualification evidence. This table is
separate from the conversational intent patterns used for
card routing.
"""

import re
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Pattern, Tuple, Union

logger = logging.getLogger(__name__)


class SignalType(str, Enum):
    """Behavioral signal categories."""
    PRICING_INTEREST = "pricing_interest"
    COMPETITOR_MENTION = "competitor_mention"
    TIMELINE_MENTION = "timeline_mention"
    PAIN_POINT = "pain_point"
    FEATURE_INTEREST = "feature_interest"
    DEMO_REQUEST = "demo_request"
    COMPLIANCE_MENTION = "compliance_mention"
    INTEGRATION_QUESTION = "integration_question"
    # Weighted but never produced by message scanning
    COMPANY_SIZE_ENTERPRISE = "company_size_enterprise"
    DECISION_MAKER_ROLE = "decision_maker_role"


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class BehavioralSignal:
    """
    A single piece of buying evidence.

    ``signal_type`` is a SignalType for known categories; signals read back
    from storage with an unrecognised type keep the raw string.
    """
    signal_type: Union[SignalType, str]
    content: str
    confidence: float
    timestamp: str = field(default_factory=_utc_iso)
    details: str = ""

    @property
    def type_value(self) -> str:
        if isinstance(self.signal_type, SignalType):
            return self.signal_type.value
        return str(self.signal_type)

    def dedup_key(self) -> str:
        return f"{self.type_value}:{self.content[:50].lower().strip()}"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": self.type_value,
            "content": self.content,
            "confidence": self.confidence,
            "timestamp": self.timestamp,
        }
        if self.details:
            data["details"] = self.details
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BehavioralSignal":
        raw_type = data.get("type", "")
        try:
            signal_type: Union[SignalType, str] = SignalType(raw_type)
        except ValueError:
            signal_type = raw_type
        return cls(
            signal_type=signal_type,
            content=data.get("content", ""),
            confidence=float(data.get("confidence", 0.0)),
            timestamp=data.get("timestamp") or _utc_iso(),
            details=data.get("details", ""),
        )


def _compile(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


class SignalDetector:
    """
    Detects behavioral signals in a single message.

    At most one signal is produced per type per message, from the first
    matching pattern. Longer patterns are treated as more specific and
    yield the higher confidence.
    """

    SIGNAL_PATTERNS: Dict[SignalType, Tuple[Pattern, ...]] = {
        SignalType.PRICING_INTEREST: _compile(
            r"pric(e|ing)", r"cost", r"budget", r"how much", r"investment", r"roi",
            r"subscription", r"license",
        ),
        SignalType.COMPETITOR_MENTION: _compile(
            r"competitor", r"alternative", r"compare", r"vs\.", r"versus", r"switch from",
            r"current(ly)? (use|using)", r"looking at other",
        ),
        SignalType.TIMELINE_MENTION: _compile(
            r"timeline", r"how (long|soon)", r"implement(ation)?", r"deploy", r"go live",
            r"deadline", r"quarter", r"this (week|month|year)", r"next (week|month)",
        ),
        SignalType.PAIN_POINT: _compile(
            r"challeng(e|ing)", r"problem", r"issue", r"struggle", r"difficult", r"pain point",
            r"frustrat", r"compliance (issue|problem|risk)", r"audit", r"regulat", r"need help",
            r"looking for",
        ),
        SignalType.FEATURE_INTEREST: _compile(
            r"feature", r"capabilit", r"can (you|it|arqai)", r"does (it|arqai)", r"support for",
            r"how does", r"automat", r"workflow", r"bot",
        ),
        SignalType.DEMO_REQUEST: _compile(
            r"demo", r"trial", r"poc", r"proof of concept", r"pilot", r"see it in action",
            r"show me", r"meeting", r"schedule", r"call", r"talk", r"discuss", r"chat with",
            r"speak with", r"connect with", r"set up", r"book",
        ),
        SignalType.COMPLIANCE_MENTION: _compile(
            r"hipaa", r"gdpr", r"sox", r"finra", r"naic", r"compliance", r"regulat", r"audit",
            r"governance",
        ),
        SignalType.INTEGRATION_QUESTION: _compile(
            r"integrat", r"connect", r"api", r"work with", r"compatible", r"snowflake", r"azure",
            r"aws", r"slack", r"erp", r"crm", r"salesforce",
        ),
    }

    SPECIFIC_PATTERN_LENGTH = 17
    HIGH_CONFIDENCE = 0.9
    BASE_CONFIDENCE = 0.7
    SNIPPET_LENGTH = 200

    def _confidence(self, pattern: Pattern) -> float:
        if len(pattern.pattern) > self.SPECIFIC_PATTERN_LENGTH:
            return self.HIGH_CONFIDENCE
        return self.BASE_CONFIDENCE

    def detect(self, message: str) -> List[BehavioralSignal]:
        """
        Detect behavioral signals in a message.

        Args:
            message: Visitor message text

        Returns:
            Signals in table order, one per matching type
        """
        signals: List[BehavioralSignal] = []
        timestamp = _utc_iso()

        for signal_type, patterns in self.SIGNAL_PATTERNS.items():
            for pattern in patterns:
                if pattern.search(message):
                    signals.append(BehavioralSignal(
                        signal_type=signal_type,
                        content=message[:self.SNIPPET_LENGTH],
                        confidence=self._confidence(pattern),
                        timestamp=timestamp,
                    ))
                    break

        return signals


def deduplicate_signals(signals: Iterable[BehavioralSignal]) -> List[BehavioralSignal]:
    """
    Collapse signals sharing a type and content prefix.

    The key is the type plus the first 50 characters of content, lowercased
    and stripped. On collision the higher-confidence signal replaces the
    earlier one in place; ties keep the first seen.
    """
    seen: Dict[str, BehavioralSignal] = {}
    for signal in signals:
        key = signal.dedup_key()
        if key not in seen or seen[key].confidence < signal.confidence:
            seen[key] = signal
    return list(seen.values())
