"""
Unit tests for severity ranking and summaries.
"""

from config.color_profiles import ADVISORY_NOTE, BLOOD_PROFILES
from services.interfaces import AnalysisResult, Finding
from services.utils.severity_legend import build_legend, highest_severity, summarize


def finding(profile_index, x=0):
    return Finding(x=x, y=0, width=12, height=12, profile=BLOOD_PROFILES[profile_index], pixel_count=10)


class TestSeverityLegend:
    """Test cases for severity helpers."""

    def test_highest_severity(self):
        assert highest_severity([]) is None
        assert highest_severity([finding(4)]) == 'caution'
        assert highest_severity([finding(4), finding(2)]) == 'warning'
        assert highest_severity([finding(3), finding(0), finding(4)]) == 'urgent'

    def test_legend_groups_profiles_by_tier(self):
        legend = build_legend(BLOOD_PROFILES)
        assert [tier['severity'] for tier in legend] == ['urgent', 'warning', 'caution']
        assert [p['label'] for p in legend[0]['profiles']] == ['Bright Red', 'Dark Red']
        assert [p['label'] for p in legend[1]['profiles']] == ['Maroon', 'Brown Blood']
        assert legend[2]['profiles'][0] == {
            'label': 'Black (Tarry)', 'color': '#1f2937', 'shape': 'cross', 'hatch': 'dots'
        }

    def test_summary_without_findings(self):
        summary = summarize(AnalysisResult.empty())
        assert summary['headline'] == 'No blood detected'
        assert summary['severity'] is None
        assert summary['advisory'] == ADVISORY_NOTE

    def test_summary_with_findings(self):
        findings = (finding(2), finding(3, x=100))
        result = AnalysisResult(findings=findings, highest_severity=highest_severity(findings))
        summary = summarize(result)
        assert summary['headline'] == '2 detections: Warning'
        assert summary['severity'] == 'warning'
