"""
eapproval: 전자결재 결재선 서비스.
"""

__version__ = "1.0.0"
