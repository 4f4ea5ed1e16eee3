"""Redis Lua scripts for the sliding-window limiter.

Used only when atomic admission is enabled: the script runs purge, count,
oldest lookup and insert inside Redis, so concurrent requests for one
identifier cannot interleave between the count and the insert.
"""

# KEYS[1] = identifier key
# ARGV = now_ms, window_ms, max_requests, member, ttl_ms
# Returns {1} when admitted, {0, oldest_score} when denied (oldest may be nil)
SLIDING_WINDOW_ADMIT_SCRIPT = """
    local key = KEYS[1]
    local now = tonumber(ARGV[1])
    local window_ms = tonumber(ARGV[2])
    local max_requests = tonumber(ARGV[3])
    local member = ARGV[4]
    local ttl_ms = tonumber(ARGV[5])

    redis.call('ZREMRANGEBYSCORE', key, '-inf', now - window_ms)

    local count = redis.call('ZCARD', key)
    if count >= max_requests then
        local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
        if oldest[2] then
            return {0, oldest[2]}
        end
        return {0}
    end

    redis.call('ZADD', key, now, member)
    redis.call('PEXPIRE', key, ttl_ms)
    return {1}
"""
