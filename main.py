#!/usr/bin/env python3
"""
Organization Sign-up
Main entry point for the operator CLI
"""

from org_signup.cli import main

if __name__ == "__main__":
    main()
