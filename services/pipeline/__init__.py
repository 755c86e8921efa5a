"""
Pipeline services for bowl image analysis.

Main orchestrator: AnalysisPipeline
Pipeline steps: see services.pipeline.steps
"""

from services.pipeline.pipeline import AnalysisPipeline, analyze

__all__ = ['AnalysisPipeline', 'analyze']
