"""Adaptadores de I/O (HTTP, autoridad de sesiones, ficheros de entrada)."""
