"""Car API: car CRUD over a relational store with bearer-token auth."""
