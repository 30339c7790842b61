"""
賃貸管理バックオフィス
"""

__version__ = "1.0.0"
