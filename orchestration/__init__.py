"""Orchestration of the chat, import and merge workflows."""
