"""Servicios del Core: cache de sesiones, paginación y ensamblado de DocTypes."""
