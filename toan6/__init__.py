"""Toán 6 - Self-paced Grade 6 math lessons (Kết nối tri thức)."""

__version__ = "0.1.0"
