from typing import Optional

from supabase import create_client, Client
from voucher_sheets.core.config import settings
import logging

logger = logging.getLogger(__name__)


class SupabaseService:
    def __init__(self):
        self.client: Optional[Client] = None
        self.initialize()

    def initialize(self):
        try:
            # Use NEXT_PUBLIC_SUPABASE_URL if SUPABASE_URL is not set
            supabase_url = settings.SUPABASE_URL or settings.NEXT_PUBLIC_SUPABASE_URL
            supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_SERVICE_KEY

            if not supabase_url or not supabase_key:
                logger.warning("Supabase not configured - sheets will be kept in memory")
                self.client = None
                return

            self.client = create_client(supabase_url, supabase_key)
            logger.info("Supabase client initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            self.client = None

    def get_client(self) -> Optional[Client]:
        if not self.client:
            self.initialize()
        return self.client


supabase_service = SupabaseService()
