"""
Form Package

Static form catalog consumed by the conversation core.
"""

from services.form.catalog import MOCK_FORMS, get_form, list_forms

__all__ = ['MOCK_FORMS', 'get_form', 'list_forms']
