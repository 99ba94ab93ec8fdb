"""
SmartLife AI Insurance Portal API

This package provides the backend for the SmartLife customer and agent portal:
- JWT authentication with customer, agent and admin roles
- Policy catalogue, comparison and claims filing
- AI assistant (keyword templates, HuggingFace or Vectara) and policy recommendations
- Agent dashboards, analytics, reports and email/WhatsApp notifications
"""

__version__ = "1.0.0"
