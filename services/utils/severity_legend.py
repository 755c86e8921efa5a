"""
Severity legend and result summaries for HealthScan CV Service.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from config.color_profiles import ADVISORY_NOTE, SEVERITY_INFO, SEVERITY_ORDER
from services.interfaces import AnalysisResult, ColorProfile, Finding, Severity


def highest_severity(findings: Iterable[Finding]) -> Optional[Severity]:
    """Most severe tier among the findings, or None if there are none."""
    present = {finding.severity for finding in findings}
    for severity in SEVERITY_ORDER:
        if severity in present:
            return severity
    return None


def build_legend(profiles: Sequence[ColorProfile]) -> List[Dict]:
    """
    Legend grouping profiles under their severity tier.

    Each profile entry carries its label, color, shape and hatch so a legend can
    be rendered without relying on color alone.
    """
    legend = []
    for severity in SEVERITY_ORDER:
        info = SEVERITY_INFO[severity]
        legend.append({
            'severity': severity,
            'title': info['title'],
            'description': info['description'],
            'profiles': [
                {
                    'label': profile.label,
                    'color': profile.color,
                    'shape': profile.shape,
                    'hatch': profile.hatch,
                }
                for profile in profiles
                if profile.severity == severity
            ],
        })
    return legend


def summarize(result: AnalysisResult) -> Dict:
    """
    Human-readable headline for a result.

    Returns:
        Dict with 'headline', 'severity', 'description' and the advisory note
    """
    count = len(result.findings)
    if count == 0:
        return {
            'headline': 'No blood detected',
            'severity': None,
            'description': 'No signs of blood were found in this scan. Continue monitoring regularly.',
            'advisory': ADVISORY_NOTE,
        }

    severity = result.highest_severity or highest_severity(result.findings)
    info = SEVERITY_INFO[severity]
    plural = 's' if count > 1 else ''
    return {
        'headline': f'{count} detection{plural}: {info["title"]}',
        'severity': severity,
        'description': info['description'],
        'advisory': ADVISORY_NOTE,
    }
