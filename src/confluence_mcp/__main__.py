from confluence_mcp.main import main

main()
