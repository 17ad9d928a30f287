"""
Utility Scripts.

This package contains operational scripts:

- setup_supabase.py: Print or verify the catalog table and batch function SQL

Run scripts with: python -m scripts.<script_name>
"""
