"""ServiceHub marketplace backend: booking lifecycle, provider tiers and commission."""
