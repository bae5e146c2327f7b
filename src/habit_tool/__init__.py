"""Vistas de seguimiento de hábitos: calendario mensual y proyección de métricas."""
