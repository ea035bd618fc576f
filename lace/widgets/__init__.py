"""Reusable components."""

from .form import FormContainer, Input

__all__ = ["FormContainer", "Input"]
