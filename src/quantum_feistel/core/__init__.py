"""GF(2) solver, oracles, Feistel fixtures and the detection procedure."""
