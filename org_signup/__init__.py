"""
Organization Sign-up
Self-service organization onboarding on top of FusionAuth

Provisions, per sign-up submission:
- A tenant for the new organization
- A tenant-locked API key
- An application with the organization's roles
- The registration of the submitting user
"""

__version__ = "0.1.0"
__author__ = "Identity Platform Team"
