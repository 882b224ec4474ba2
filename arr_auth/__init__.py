"""Azure AD sign-in for Remote Rendering and Storage with a persistent MSAL token cache."""

__version__ = "0.1.0"
