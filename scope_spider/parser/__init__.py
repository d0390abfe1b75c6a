"""Document parsers consumed by the crawler: HTML, robots.txt and sitemap.xml."""
