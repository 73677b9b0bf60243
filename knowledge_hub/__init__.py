"""Knowledge Hub - personal knowledge base backed by Notion."""
