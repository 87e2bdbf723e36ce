"""
Database Schema Reference
=========================

This file provides a quick reference for all database tables and columns.
For actual SQLAlchemy models, see: mediaboard/db/models.py

Enums are stored as VARCHAR(20) holding the enum value.
"""

# ============================================================================
# API_KEYS - Principals (admin or client) authenticating with bearer keys
# ============================================================================
#
# | Column      | Type              | Constraints                    |
# |-------------|-------------------|--------------------------------|
# | id          | UUID              | PRIMARY KEY                    |
# | key_hash    | VARCHAR(255)      | NOT NULL, UNIQUE, INDEX        |
# | key_prefix  | VARCHAR(12)       | NOT NULL, INDEX                |
# | name        | VARCHAR(100)      | NOT NULL                       |
# | owner       | VARCHAR(100)      | NOT NULL                       |
# | role        | ENUM(Role)        | NOT NULL, DEFAULT 'client'     |
# | is_active   | BOOLEAN           | NOT NULL, DEFAULT TRUE         |
# | created_at  | TIMESTAMP(TZ)     | NOT NULL, DEFAULT now()        |
# | expires_at  | TIMESTAMP(TZ)     | NULLABLE                       |
#
# Enums:
#   Role: 'admin' | 'client'


# ============================================================================
# CLIENT_SUBMISSIONS - Client requests shown in the admin inbox
# ============================================================================
#
# | Column             | Type                | Constraints                      |
# |--------------------|---------------------|----------------------------------|
# | id                 | INTEGER             | PRIMARY KEY                      |
# | client_key_id      | UUID                | NOT NULL, FK(api_keys.id), INDEX |
# | title              | VARCHAR(500)        | NOT NULL                         |
# | urgency            | ENUM(Urgency)       | NOT NULL, DEFAULT 'normal'       |
# | requested_due_date | DATE                | NULLABLE                         |
# | notes              | TEXT                | NULLABLE                         |
# | status             | ENUM(Status)        | NOT NULL, DEFAULT 'pending'      |
# | admin_notes        | TEXT                | NULLABLE                         |
# | assigned_board_id  | INTEGER             | NULLABLE                         |
# | assigned_card_id   | INTEGER             | NULLABLE                         |
# | created_at         | TIMESTAMP(TZ)       | NOT NULL, DEFAULT now()          |
# | updated_at         | TIMESTAMP(TZ)       | NOT NULL, DEFAULT now()          |
#
# Enums:
#   Urgency: 'low' | 'normal' | 'urgent' | 'critical'
#   Status:  'pending' | 'in_review' | 'in_production' | 'done' | 'archived'


# ============================================================================
# BOARDS / LISTS / CARDS - Kanban production boards
# ============================================================================
#
# boards
# | Column       | Type          | Constraints                |
# |--------------|---------------|----------------------------|
# | id           | INTEGER       | PRIMARY KEY                |
# | title        | VARCHAR(255)  | NOT NULL                   |
# | description  | TEXT          | NULLABLE                   |
# | owner_key_id | UUID          | NOT NULL, FK(api_keys.id)  |
# | color        | VARCHAR(50)   | NULLABLE                   |
# | is_archived  | BOOLEAN       | NOT NULL, DEFAULT FALSE    |
# | created_at   | TIMESTAMP(TZ) | NOT NULL, DEFAULT now()    |
#
# lists
# | Column     | Type          | Constraints                         |
# |------------|---------------|-------------------------------------|
# | id         | INTEGER       | PRIMARY KEY                         |
# | board_id   | INTEGER       | NOT NULL, FK(boards.id) CASCADE     |
# | title      | VARCHAR(255)  | NOT NULL                            |
# | position   | INTEGER       | NOT NULL, 0..n-1 within the board   |
# | created_at | TIMESTAMP(TZ) | NOT NULL, DEFAULT now()             |
#
# cards
# | Column        | Type          | Constraints                          |
# |---------------|---------------|--------------------------------------|
# | id            | INTEGER       | PRIMARY KEY                          |
# | list_id       | INTEGER       | NOT NULL, FK(lists.id) CASCADE       |
# | submission_id | INTEGER       | NULLABLE, FK(client_submissions.id)  |
# | title         | VARCHAR(500)  | NOT NULL                             |
# | description   | TEXT          | NULLABLE                             |
# | position      | INTEGER       | NOT NULL, 0..n-1 within the list     |
# | due_date      | DATE          | NULLABLE                             |
# | priority      | VARCHAR(20)   | NULLABLE (urgency of the submission) |
# | is_archived   | BOOLEAN       | NOT NULL, DEFAULT FALSE              |
# | created_at    | TIMESTAMP(TZ) | NOT NULL, DEFAULT now()              |
# | updated_at    | TIMESTAMP(TZ) | NOT NULL, DEFAULT now()              |


# ============================================================================
# ATTACHMENTS - Uploaded files owned by a submission or a card
# ============================================================================
#
# | Column               | Type              | Constraints                  |
# |----------------------|-------------------|------------------------------|
# | id                   | INTEGER           | PRIMARY KEY                  |
# | parent_type          | ENUM(ParentType)  | NOT NULL, INDEX              |
# | parent_id            | INTEGER           | NOT NULL, INDEX              |
# | file_name            | VARCHAR(500)      | NOT NULL                     |
# | file_url             | TEXT              | NOT NULL                     |
# | storage_path         | TEXT              | NULLABLE                     |
# | thumbnail_url        | TEXT              | NULLABLE (videos only)       |
# | file_type            | ENUM(FileType)    | NOT NULL, DEFAULT 'other'    |
# | file_size            | BIGINT            | NULLABLE                     |
# | mime_type            | VARCHAR(100)      | NULLABLE                     |
# | uploaded_by_key_id   | UUID              | NULLABLE                     |
# | transcription        | TEXT              | NULLABLE                     |
# | transcription_status | ENUM(TxStatus)    | NOT NULL, DEFAULT 'pending'  |
# | created_at           | TIMESTAMP(TZ)     | NOT NULL, DEFAULT now()      |
#
# Enums:
#   ParentType: 'submission' | 'card'
#   FileType:   'video' | 'audio' | 'image' | 'document' | 'other'
#   TxStatus:   'pending' | 'processing' | 'completed' | 'failed'
#
# Storage keys:
#   '<parent_type>s/<parent_id>/<epoch_ms>_<8 hex>_<sanitized name>'
#   thumbnails: same directory, 'thumb_<stem>.jpg'


# ============================================================================
# UPLOAD_SESSIONS / UPLOAD_CHUNKS - In-progress chunked uploads
# ============================================================================
#
# upload_sessions
# | Column        | Type              | Constraints                  |
# |---------------|-------------------|------------------------------|
# | id            | VARCHAR(32)       | PRIMARY KEY (uuid4 hex)      |
# | owner_key_id  | UUID              | NOT NULL, INDEX              |
# | parent_type   | ENUM(ParentType)  | NOT NULL                     |
# | parent_id     | INTEGER           | NOT NULL                     |
# | file_name     | VARCHAR(500)      | NOT NULL                     |
# | declared_size | BIGINT            | NOT NULL                     |
# | mime_type     | VARCHAR(100)      | NOT NULL                     |
# | chunk_size    | INTEGER           | NOT NULL                     |
# | created_at    | TIMESTAMP(TZ)     | NOT NULL, DEFAULT now()      |
# | expires_at    | TIMESTAMP(TZ)     | NOT NULL, INDEX (sliding)    |
#
# upload_chunks
# | Column      | Type          | Constraints                              |
# |-------------|---------------|------------------------------------------|
# | id          | INTEGER       | PRIMARY KEY                              |
# | session_id  | VARCHAR(32)   | NOT NULL, FK(upload_sessions.id) CASCADE |
# | chunk_index | INTEGER       | NOT NULL                                 |
# | size        | INTEGER       | NOT NULL                                 |
# | received_at | TIMESTAMP(TZ) | NOT NULL, DEFAULT now()                  |
#
# UNIQUE (session_id, chunk_index): a retried chunk replaces the file on
# disk but never adds a second row.
#
# Chunk files live on local disk: '<UPLOAD_DIR>/chunks/<session id>/chunk_<n>'.
# Sessions are deleted on finalize, abort, or by the expiry sweep.


# ============================================================================
# INDEXES
# ============================================================================
#
# | Table              | Index Name                          | Columns        |
# |--------------------|-------------------------------------|----------------|
# | api_keys           | ix_api_keys_key_hash                | key_hash       |
# | api_keys           | ix_api_keys_key_prefix              | key_prefix     |
# | client_submissions | ix_client_submissions_client_key_id | client_key_id  |
# | client_submissions | ix_client_submissions_status        | status         |
# | lists              | ix_lists_board_id                   | board_id       |
# | cards              | ix_cards_list_id                    | list_id        |
# | attachments        | ix_attachments_parent_type          | parent_type    |
# | attachments        | ix_attachments_parent_id            | parent_id      |
# | upload_sessions    | ix_upload_sessions_owner_key_id     | owner_key_id   |
# | upload_sessions    | ix_upload_sessions_expires_at       | expires_at     |
# | upload_chunks      | ix_upload_chunks_session_id         | session_id     |


# ============================================================================
# ER DIAGRAM (Text)
# ============================================================================
#
#  ┌──────────────┐ 1:N  ┌────────────────────┐
#  │   api_keys   │─────►│ client_submissions │
#  └──────────────┘      └────────────────────┘
#         │                   │ 0..1
#         │ 1:N               ▼
#         ▼              ┌──────────┐ N:1 ┌──────────┐ N:1 ┌──────────┐
#  ┌─────────────────┐   │  cards   │────►│  lists   │────►│  boards  │
#  │ upload_sessions │   └──────────┘     └──────────┘     └──────────┘
#  └─────────────────┘
#         │ 1:N          attachments.(parent_type, parent_id) points at
#         ▼              either a client_submission or a card
#  ┌─────────────────┐
#  │  upload_chunks  │
#  └─────────────────┘
