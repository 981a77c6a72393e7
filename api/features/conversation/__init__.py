"""Conversation feature package: entities, store, resolver, DTOs, router.

Conversations and their append-only messages live in PostgreSQL and are
accessed through ``ConversationStore``; the resolver in ``service`` decides
which conversation a turn belongs to.
"""
