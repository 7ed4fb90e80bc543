"""AssetDex backend: catalog storage, discovery scanner and HTTP routes."""
