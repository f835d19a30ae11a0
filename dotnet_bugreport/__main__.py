from dotnet_bugreport.cli import main

main(prog_name="dotnet-bugreport")
