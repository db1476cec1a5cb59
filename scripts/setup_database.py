#!/usr/bin/env python3
"""
Database Setup Script for the Rapid Rater Quote Bot

Checks that the Supabase `leads` table used by the lead log exists and is
writable by the configured key. If it does not exist, prints the SQL to run
in the Supabase SQL Editor.
"""

import argparse
import sys
from pathlib import Path

from supabase import Client, create_client

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from rapid_rater.config import settings
from rapid_rater.models.quote_request import QuoteRequest
from rapid_rater.services.delivery.lead_log import build_lead_row

LEADS_SCHEMA_SQL = """
create table if not exists public.{table} (
    id            bigint generated always as identity primary key,
    created_at    timestamptz not null default now(),
    recipient     text not null,
    state         text not null,
    age           integer not null,
    gender        text not null,
    face_amount   bigint not null,
    product       text not null,
    mode          text not null,
    quote_result  text,
    table_rating  text not null default 'None',
    flat_extra    numeric not null default 0
);
"""


class DatabaseSetup:
    def __init__(self, table: str = settings.LEADS_TABLE):
        """Initialize Supabase client with the service key"""
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
            raise ValueError("Missing SUPABASE_URL or SUPABASE_SERVICE_KEY in environment")

        self.table = table
        self.supabase: Client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)

    def verify_table(self) -> bool:
        """Verify the leads table exists and is accessible"""
        print(f"\n🔍 Verifying table '{self.table}'...")
        try:
            self.supabase.table(self.table).select("id").limit(1).execute()
        except Exception as e:
            print(f"❌ Table '{self.table}' is not accessible: {str(e)}")
            return False

        print(f"✅ Table '{self.table}' is accessible")
        return True

    def write_test_row(self) -> bool:
        """Insert and remove a sample lead to prove the key can write"""
        sample = QuoteRequest(
            recipient="setup-check@example.com", state="OH", age=45,
            gender="Male", face_amount=500000,
        )
        row = build_lead_row(sample, "setup check")
        try:
            result = self.supabase.table(self.table).insert(row).execute()
            inserted_id = result.data[0]["id"]
            self.supabase.table(self.table).delete().eq("id", inserted_id).execute()
        except Exception as e:
            print(f"⚠️  Could not write a test lead: {str(e)}")
            return False

        print("✅ Test lead written and removed")
        return True

    def print_instructions(self) -> None:
        print("\n📝 Instructions:")
        print("1. Go to your Supabase project dashboard")
        print("2. Navigate to the SQL Editor")
        print("3. Run the following SQL:")
        print(LEADS_SCHEMA_SQL.format(table=self.table))
        print("Afterwards, run this script again to verify the setup.")


def main():
    parser = argparse.ArgumentParser(description='Verify the Rapid Rater leads table')
    parser.add_argument('--skip-write', action='store_true', help='Only check that the table is readable')
    args = parser.parse_args()

    print("🚀 Rapid Rater Database Setup")
    print("=" * 50)

    try:
        setup = DatabaseSetup()

        if not setup.verify_table():
            setup.print_instructions()
            sys.exit(1)

        if not args.skip_write and not setup.write_test_row():
            sys.exit(1)

        print("\n🎉 Lead logging is ready!")

    except Exception as e:
        print(f"\n❌ Setup failed: {str(e)}")
        sys.exit(1)


if __name__ == '__main__':
    main()
