from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import urlparse

from config.settings import Settings, get_settings
from models.profile_record import RawProfile
from models.validation import Finding, ValidationStatus
from utils.number_parsing import parse_count

logger = logging.getLogger(__name__)


class ProfileValidator:
    """Default rules for raw profile records.

    Findings never raise: errors flag the profile (and the run's
    validation_failures counter) but ingestion always proceeds.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def validate_linkedin_url(self, url: Any) -> bool:
        """Validate LinkedIn profile URL format."""
        if not url or not isinstance(url, str):
            return False
        try:
            parsed = urlparse(url.strip())
        except ValueError:
            return False
        return (
            parsed.scheme in ['http', 'https'] and
            'linkedin.com' in parsed.netloc.lower() and
            '/in/' in parsed.path
        )

    def validate_name(self, name: Any) -> bool:
        """Validate person name."""
        if not name or not isinstance(name, str):
            return False
        name = name.strip()
        return (
            len(name) >= 2 and
            len(name) <= self.settings.max_name_length and
            not name.startswith(('http', 'www', '@'))  # Basic sanity checks
        )

    def validate_required_fields(self, profile: Dict[str, Any]) -> List[Finding]:
        findings: List[Finding] = []
        for field in self.settings.required_fields:
            value = profile.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                findings.append(Finding(field=field, message=f"Missing required field: {field}", severity="error"))
                continue

            if field == 'linkedin_id' and (isinstance(value, bool) or not isinstance(value, (str, int))):
                findings.append(Finding(field=field, message=f"Identity key must be text or an integer: {value!r}", severity="error"))

            if field == 'profile_url' and not self.validate_linkedin_url(value):
                findings.append(Finding(field=field, message=f"Invalid LinkedIn URL: {value}", severity="error"))

            if field == 'full_name' and not self.validate_name(value):
                findings.append(Finding(field=field, message=f"Invalid name format: {value}", severity="error"))
        return findings

    def validate_optional_fields(self, profile: Dict[str, Any]) -> List[Finding]:
        findings: List[Finding] = []
        limits = {
            'headline': self.settings.max_headline_length,
            'location': self.settings.max_location_length,
            'summary': self.settings.max_summary_length,
        }
        for field in (*limits, 'profile_image_url', 'banner_image_url'):
            value = profile.get(field)
            if value is not None and not isinstance(value, str):
                findings.append(Finding(field=field, message=f"{field} should be text, got {type(value).__name__}", severity="error"))

        for field, limit in limits.items():
            value = profile.get(field)
            if isinstance(value, str) and len(value) > limit:
                findings.append(Finding(
                    field=field,
                    message=f"{field.capitalize()} field too long: {len(str(value))} characters",
                    severity="warning",
                ))

        connections = profile.get('connections_count')
        if connections is not None and connections != '':
            parsed = parse_count(connections)
            if parsed is None:
                findings.append(Finding(field='connections_count', message=f"Unparsable connections count: {connections}", severity="warning"))
            elif parsed < 0:
                findings.append(Finding(field='connections_count', message="Connections count is negative", severity="error"))
            elif parsed > self.settings.max_connections:
                findings.append(Finding(field='connections_count', message=f"Connections count above plausible maximum: {parsed}", severity="warning"))

        for field in ('profile_image_url', 'banner_image_url'):
            value = profile.get(field)
            if isinstance(value, str) and value and not value.startswith(('http://', 'https://')):
                findings.append(Finding(field=field, message=f"{field} should start with http(s)://", severity="warning"))

        for field in ('experience', 'education', 'skills'):
            value = profile.get(field)
            if value is not None and not isinstance(value, list):
                findings.append(Finding(field=field, message=f"{field} should be a list", severity="error"))

        skills = profile.get('skills')
        if isinstance(skills, list):
            lowered = [str(s).strip().lower() for s in skills if s]
            if len(set(lowered)) != len(lowered):
                findings.append(Finding(field='skills', message="Duplicate skills listed", severity="info"))
        return findings

    def validate(self, raw: Union[RawProfile, Mapping[str, Any]]) -> List[Finding]:
        """Validate a single raw profile; findings are ordered required-first."""
        profile = raw.model_dump() if isinstance(raw, RawProfile) else dict(raw)
        findings = self.validate_required_fields(profile)
        findings.extend(self.validate_optional_fields(profile))
        if findings:
            logger.debug(
                "Profile %s has %d validation findings", profile.get('linkedin_id'), len(findings),
                extra={"step": "validate", "profile_id": profile.get('linkedin_id') or "-"},
            )
        return findings

    @staticmethod
    def classify(findings: List[Finding]) -> ValidationStatus:
        if any(f.severity == "error" for f in findings):
            return "invalid"
        if any(f.severity == "warning" for f in findings):
            return "warning"
        return "valid"


def has_errors(findings: List[Finding]) -> bool:
    return any(f.severity == "error" for f in findings)
