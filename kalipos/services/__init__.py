"""Services: Supabase persistence, Telegram messaging, notification relay, formatting."""
