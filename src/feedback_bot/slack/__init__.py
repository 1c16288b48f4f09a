"""Slack edge: webhooks, signature verification, formatting, messaging, and interactivity."""
