"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Default admin creation and demo account seeding
- db: Database configuration and connection management
- exceptions: Domain errors raised by the onboarding and admin services
- permissions: Role enum and static role -> permission table
- security: Password hashing, session token issuing and temporary passwords
"""
