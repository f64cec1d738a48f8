"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2) y el
  registro inmutable de skins.
- El dominio no conoce HTTP, CLI, ni plantillas: solo conceptos del problema.
"""
