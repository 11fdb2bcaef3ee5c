"""
appdeploy CLI - deploy App Engine applications through appcfg.

Provides subcommands for:
- appdeploy update [APP_DIR]   - Upload the application
- appdeploy rollback [APP_DIR] - Roll back an interrupted update
- appdeploy config             - View and edit configuration
- appdeploy doctor             - Check SDK and credential setup
"""

__version__ = "0.1.0"
