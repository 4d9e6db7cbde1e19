REDIS_USER_KEY = "user:{username}" # username - hash of user record fields
REDIS_ASSESSMENTS_KEY = "user:assessments:{username}" # username - list of JSON assessments

# **Example `user:{username}` hash fields**
# - `username` = login name
# - `email` = optional
# - `password_hash` = pbkdf2 hash, `salt$hexdigest`
# - `first_time_user` = "1" or "0"
# - `created_at` = ISO timestamp
