"""Notification sync service package.

Layers live in the ``domain``, ``application``, ``infrastructure`` and
``interfaces`` subpackages; nothing is re-exported from here.
"""
