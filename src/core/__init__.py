"""Core: dominio, errores, configuración y servicios (sin CLI)."""
