import sys

import reqpool


def main() -> int:
    if len(sys.argv) < 2:
        url = input('Enter a URL to fetch: ').strip()
    else:
        url = sys.argv[1].strip()

    trace: list[reqpool.TraceInfo] = []
    exit_code = 1
    with reqpool.RequestPool() as pool, pool.session() as (req, resp):
        try:
            req.get(url).max_redirects(5).retry(2).with_trace(trace).do(resp)
            print(f'{resp.status_code} {resp.url}')
            print(f'Title: {resp.title or "N/A"}')
            exit_code = 0
        except reqpool.NoAttemptsLeftError as exc:
            print(f'Gave up after {exc.attempts} attempts: {exc.last_error}')
        except Exception as exc:
            print(f'Error fetching {url}, check your network connection {exc}')

    for entry in trace:
        print(f'Call took {entry.duration:.3f}s')

    return exit_code


if __name__ == '__main__':
    sys.exit(main())
