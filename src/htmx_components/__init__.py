"""
HTMX components for Django
==========================
Server-side UI components that combine Django templates with `htmx <https://htmx.org>`_ partial page updates.
Tables, inputs, navigation bars and CRUD workflows are declared with a fluent builder API, while the library
takes care of out-of-band swaps, per-page state and authorization.

Key features
============
* Declare a model handler once per model type and get a sortable, filterable, paginated table
* Inline create / edit / delete of table rows with out-of-band row swaps
* Page state (sorting, paging, filters, the record being edited) travels in an encrypted ``X-Page-State`` header
* CRUD operations are checked against Django model permissions, or a checker of your own
* Multi-fragment htmx responses built from templates or registered components
"""
__version__ = "0.1"
