"""Hot key, big key and slow query tracking, statistics and network counters."""