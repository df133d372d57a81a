"""Amazon Marketplace Web Service client."""
