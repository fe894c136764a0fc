"""
SQL schema for the image index table read by the sync service.
Run these queries in your Supabase SQL editor.
"""

CREATE_IMAGE_INDEX_TABLE = """
-- Image index: one row per generated image in the storage bucket
CREATE TABLE IF NOT EXISTS image_index (
    id BIGSERIAL PRIMARY KEY,
    path TEXT UNIQUE NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    printify_uploaded BOOLEAN NOT NULL DEFAULT FALSE
);

-- Partial index matching the "oldest unprocessed" query
CREATE INDEX IF NOT EXISTS idx_image_index_pending
    ON image_index(created_at, id)
    WHERE printify_uploaded = FALSE;

-- Enable Row Level Security
ALTER TABLE image_index ENABLE ROW LEVEL SECURITY;

-- Policy: Service role can do everything (for the sync service)
CREATE POLICY image_index_service_role_all ON image_index
    FOR ALL
    USING (auth.role() = 'service_role');
"""

CREATE_PROCESSED_FLAG_GUARD = """
-- The processed flag never reverts once set
CREATE OR REPLACE FUNCTION keep_printify_uploaded()
RETURNS TRIGGER AS $$
BEGIN
    IF OLD.printify_uploaded AND NOT NEW.printify_uploaded THEN
        NEW.printify_uploaded = TRUE;
    END IF;
    RETURN NEW;
END;
$$ language 'plpgsql';

DROP TRIGGER IF EXISTS keep_image_index_uploaded ON image_index;
CREATE TRIGGER keep_image_index_uploaded
    BEFORE UPDATE ON image_index
    FOR EACH ROW
    EXECUTE FUNCTION keep_printify_uploaded();
"""

# Combined setup script
FULL_SCHEMA_SETUP = f"""
-- =====================================================
-- Printify Sync Schema Setup
-- =====================================================
-- Run this in your Supabase SQL Editor
-- =====================================================

{CREATE_IMAGE_INDEX_TABLE}

{CREATE_PROCESSED_FLAG_GUARD}

-- =====================================================
-- Setup Complete!
-- =====================================================
"""

if __name__ == "__main__":
    print(FULL_SCHEMA_SETUP)
