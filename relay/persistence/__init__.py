"""Persistence package: async repositories over the message store."""
