"""Time gateway so polling loops can be tested without sleeping."""
