"""Transactional e-mail: dispatch, provider webhooks and resends."""
