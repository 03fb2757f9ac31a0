"""Business logic services: points, levels, tasks, auctions, promo codes and accounts."""
