#!/usr/bin/env python3
"""Supabase database setup script for catalog-norm.

This script outputs the SQL needed to store catalog documents in Supabase
and to commit field-update batches atomically.
Copy the SQL output and run it in the Supabase SQL Editor.

Usage:
    # Print all SQL to console
    python scripts/setup_supabase.py

    # Print SQL and save to file
    python scripts/setup_supabase.py --output setup.sql

    # Verify the table and function exist
    python scripts/setup_supabase.py --verify

Objects Created:
    - <table>: catalog documents (id TEXT, data JSONB)
    - apply_field_updates(target_table, updates): transactional batch apply
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime


# =============================================================================
# SQL Schema Definitions
# =============================================================================

SCHEMA_SQL = """
-- =============================================================================
-- catalog-norm Schema for Supabase
-- =============================================================================
-- Generated: {generated_at}
--
-- Instructions:
-- 1. Open your Supabase project dashboard
-- 2. Go to SQL Editor
-- 3. Paste this entire script
-- 4. Click "Run" to execute
-- =============================================================================

-- =============================================================================
-- Table: {table}
-- =============================================================================
-- One row per catalog record. Search fields (name_norm, name_norm_ngrams,
-- aliases_norm) are keys inside the data document.
-- =============================================================================

CREATE TABLE IF NOT EXISTS {table} (
    id TEXT PRIMARY KEY,
    data JSONB NOT NULL DEFAULT '{{}}'::jsonb,
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_{table}_name_norm
    ON {table} ((data->>'name_norm'));
CREATE INDEX IF NOT EXISTS idx_{table}_ngrams
    ON {table} USING GIN ((data->'name_norm_ngrams'));
CREATE INDEX IF NOT EXISTS idx_{table}_aliases_norm
    ON {table} USING GIN ((data->'aliases_norm'));

-- =============================================================================
-- Function: apply_field_updates
-- =============================================================================
-- Applies one batch: updates is a JSON array of
--   {{"id": "...", "set": {{...}}, "unset": ["field", ...]}}
-- The function body is a single transaction. An unknown id raises
-- SQLSTATE P0002 and rolls back the whole batch.
-- =============================================================================

CREATE OR REPLACE FUNCTION apply_field_updates(target_table TEXT, updates JSONB)
RETURNS INTEGER
LANGUAGE plpgsql
AS $$
DECLARE
    item JSONB;
    affected INTEGER;
    total INTEGER := 0;
BEGIN
    FOR item IN SELECT * FROM jsonb_array_elements(updates)
    LOOP
        EXECUTE format(
            'UPDATE %I SET data = (data || $1) - $2, updated_at = NOW() WHERE id = $3',
            target_table
        )
        USING
            COALESCE(item->'set', '{{}}'::jsonb),
            ARRAY(SELECT jsonb_array_elements_text(COALESCE(item->'unset', '[]'::jsonb))),
            item->>'id';

        GET DIAGNOSTICS affected = ROW_COUNT;
        IF affected = 0 THEN
            RAISE EXCEPTION 'stale reference: %', item->>'id'
                USING ERRCODE = 'P0002';
        END IF;
        total := total + affected;
    END LOOP;
    RETURN total;
END;
$$;
"""

DROP_SQL = """
-- WARNING: This will DELETE ALL catalog documents!
DROP FUNCTION IF EXISTS apply_field_updates(TEXT, JSONB);
DROP TABLE IF EXISTS {table} CASCADE;
"""


# =============================================================================
# Verification Functions
# =============================================================================

def verify_setup(table: str) -> dict:
    """Verify that the catalog table and the batch function exist.

    Returns:
        Dictionary with verification results.
    """
    from postgrest.exceptions import APIError

    from catalog_norm.core import CatalogNormError, DependencyContainer

    results = {'success': True, 'checks': {}, 'errors': []}

    try:
        supabase = DependencyContainer().supabase
    except CatalogNormError as e:
        return {'success': False, 'error': str(e)}

    try:
        supabase.table(table).select('id').limit(1).execute()
        results['checks'][table] = True
    except APIError as e:
        results['checks'][table] = False
        results['errors'].append(f"{table}: {e.message}")
        results['success'] = False

    try:
        supabase.rpc('apply_field_updates', {'target_table': table, 'updates': []}).execute()
        results['checks']['apply_field_updates'] = True
    except APIError as e:
        results['checks']['apply_field_updates'] = False
        results['errors'].append(f"apply_field_updates: {e.message}")
        results['success'] = False

    return results


def print_verification_results(results: dict) -> None:
    """Print verification results in a formatted way."""
    print("\n" + "=" * 70)
    print("Supabase Setup Verification Results")
    print("=" * 70)

    if 'error' in results:
        print(f"\nError: {results['error']}")
        return

    print(f"\nOverall Status: {'PASS' if results['success'] else 'FAIL'}")
    print("-" * 70)

    for name, ok in results['checks'].items():
        icon = "[+]" if ok else "[-]"
        print(f"  {icon} {name}: {'OK' if ok else 'MISSING'}")

    if results['errors']:
        print("\nErrors:")
        for error in results['errors']:
            print(f"  - {error}")
        print("\nRun this script without --verify to get the setup SQL.")

    print("\n" + "=" * 70)


# =============================================================================
# Main Functions
# =============================================================================

def get_setup_sql(table: str) -> str:
    """Get the complete setup SQL with timestamp."""
    return SCHEMA_SQL.format(
        generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        table=table,
    )


def get_drop_sql(table: str) -> str:
    """Get the SQL to drop the catalog objects (use with caution!)."""
    return DROP_SQL.format(table=table)


def main():
    """Main entry point for the setup script."""
    parser = argparse.ArgumentParser(
        description='Generate Supabase setup SQL for catalog-norm',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Print setup SQL to console
    python scripts/setup_supabase.py

    # Save setup SQL to file
    python scripts/setup_supabase.py --output setup.sql

    # Verify objects exist in Supabase
    python scripts/setup_supabase.py --verify
        """
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Save SQL to file instead of printing'
    )

    parser.add_argument(
        '--type', '-t',
        type=str,
        choices=['setup', 'drop'],
        default='setup',
        help='Type of SQL to generate (default: setup)'
    )

    parser.add_argument(
        '--table',
        type=str,
        default='apps',
        help='Catalog table name (default: apps)'
    )

    parser.add_argument(
        '--verify', '-v',
        action='store_true',
        help='Verify that the table and function exist in Supabase'
    )

    args = parser.parse_args()

    if args.verify:
        results = verify_setup(args.table)
        print_verification_results(results)
        sys.exit(0 if results.get('success') else 1)

    sql = get_setup_sql(args.table) if args.type == 'setup' else get_drop_sql(args.table)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(sql)
        print(f"SQL saved to: {args.output}")
    else:
        if args.type == 'drop':
            print("\n" + "!" * 70)
            print("WARNING: This will DELETE ALL DATA!")
            print("!" * 70 + "\n")
        print(sql)


if __name__ == '__main__':
    main()
