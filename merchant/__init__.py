# Merchant service
# Product catalog and the server-side Cart Store of record
